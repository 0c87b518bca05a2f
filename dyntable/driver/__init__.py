from dyntable.driver._sync import CursorContext, RecordStream, SyncDriver

__all__ = ("CursorContext", "RecordStream", "SyncDriver")
