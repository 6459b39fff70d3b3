from .list_store import ListStore, InMemoryListStore, RedisListStore

__all__ = ['ListStore', 'InMemoryListStore', 'RedisListStore']
