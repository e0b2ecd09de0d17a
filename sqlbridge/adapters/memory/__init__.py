from sqlbridge.adapters.memory.store import MemoryQuery, MemoryResponse, MemoryRPC, MemoryStore, MemoryStoreError

__all__ = ("MemoryQuery", "MemoryRPC", "MemoryResponse", "MemoryStore", "MemoryStoreError")
