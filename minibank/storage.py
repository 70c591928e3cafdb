"""
Account Store Module

Provides the account store interface consumed by the engines and an
in-memory implementation. The store owns every Account instance; callers
receive references and mutate them in place while holding the account's lock.
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterator, List, Optional
import threading
from contextlib import contextmanager, ExitStack

from .accounts import Account


class AccountStore(ABC):
    """Abstract interface for account stores"""
    
    @abstractmethod
    def get(self, account_id: str) -> Optional[Account]:
        """Get an account by id, or None if absent"""
        pass
    
    @abstractmethod
    def get_all(self) -> List[Account]:
        """Get all accounts"""
        pass
    
    @abstractmethod
    def exists(self, account_id: str) -> bool:
        """Check if an account exists"""
        pass
    
    @abstractmethod
    def lock_accounts(self, *account_ids: str):
        """
        Context manager granting exclusive access to the given accounts.
        
        Locks are acquired in a fixed global order so that multi-account
        operations cannot deadlock.
        """
        pass


class InMemoryAccountStore(AccountStore):
    """In-memory account store with one re-entrant lock per account"""
    
    def __init__(self):
        self._accounts: Dict[str, Account] = {}
        self._account_locks: Dict[str, threading.RLock] = {}
        self._lock = threading.RLock()
    
    def add(self, account: Account) -> Account:
        """Register a new account"""
        with self._lock:
            if account.id in self._accounts:
                raise ValueError(f"Account {account.id} already exists")
            self._accounts[account.id] = account
            self._account_locks[account.id] = threading.RLock()
            return account
    
    def get(self, account_id: str) -> Optional[Account]:
        with self._lock:
            return self._accounts.get(account_id)
    
    def get_all(self) -> List[Account]:
        with self._lock:
            return list(self._accounts.values())
    
    def exists(self, account_id: str) -> bool:
        with self._lock:
            return account_id in self._accounts
    
    def count(self) -> int:
        """Count registered accounts"""
        with self._lock:
            return len(self._accounts)
    
    @contextmanager
    def lock_accounts(self, *account_ids: str) -> Iterator[None]:
        """Acquire the locks of the distinct known ids in sorted order"""
        with self._lock:
            locks = [
                self._account_locks[account_id]
                for account_id in sorted(set(account_ids))
                if account_id in self._account_locks
            ]
        
        with ExitStack() as stack:
            for lock in locks:
                stack.enter_context(lock)
            yield
