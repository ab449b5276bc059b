from formfill.infra.stores.csv_store import CsvRowStore
from formfill.infra.stores.memory_store import InMemoryRowStore

__all__ = ["CsvRowStore", "InMemoryRowStore"]
