"""
Audit Trail Module

Hash-chained in-memory audit log with SHA-256 for tamper detection.
Every balance change and every rejected request is recorded here.
"""

import hashlib
import json
import threading
import uuid
from datetime import datetime, timezone
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional


class AuditEventType(Enum):
    """Types of audit events"""
    TRANSFER_COMPLETED = "transfer_completed"
    WITHDRAWAL_COMPLETED = "withdrawal_completed"
    TRANSACTION_REJECTED = "transaction_rejected"
    INTEREST_CAPITALIZED = "interest_capitalized"
    CLOCK_ADVANCED = "clock_advanced"


def _convert_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    elif isinstance(value, datetime):
        return value.isoformat()
    elif isinstance(value, Enum):
        return value.value
    elif isinstance(value, dict):
        return {k: _convert_value(v) for k, v in value.items()}
    elif isinstance(value, (list, tuple)):
        return [_convert_value(v) for v in value]
    elif hasattr(value, 'isoformat'):
        return value.isoformat()
    return value


@dataclass
class AuditEvent:
    """
    Audit event with hash chaining for tamper detection
    """
    id: str
    created_at: datetime
    event_type: AuditEventType
    entity_type: str   # account, transaction, clock
    entity_id: str
    previous_hash: str
    current_hash: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    
    def __post_init__(self):
        # Metadata must be JSON serializable for hashing
        self.metadata = {k: _convert_value(v) for k, v in self.metadata.items()}
    
    def calculate_hash(self) -> str:
        """
        Calculate SHA-256 hash of this event
        Hash includes all fields except current_hash
        """
        hash_data = {
            'id': self.id,
            'created_at': self.created_at.isoformat(),
            'event_type': self.event_type.value,
            'entity_type': self.entity_type,
            'entity_id': self.entity_id,
            'previous_hash': self.previous_hash,
            'metadata': self.metadata
        }
        
        json_data = json.dumps(hash_data, sort_keys=True, separators=(',', ':'))
        return hashlib.sha256(json_data.encode('utf-8')).hexdigest()
    
    def verify_hash(self) -> bool:
        """Verify that the current hash is correct"""
        return self.current_hash == self.calculate_hash()


class AuditTrail:
    """
    Append-only hash-chained audit trail
    """
    
    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._events: List[AuditEvent] = []
        self._lock = threading.Lock()
    
    def log_event(
        self,
        event_type: AuditEventType,
        entity_type: str,
        entity_id: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Optional[AuditEvent]:
        """
        Log an audit event with hash chaining
        
        Args:
            event_type: Type of audit event
            entity_type: Type of entity being audited
            entity_id: ID of the entity
            metadata: Additional event-specific data
            
        Returns:
            Created AuditEvent, or None when the trail is disabled
        """
        if not self.enabled:
            return None
        
        with self._lock:
            previous_hash = self._events[-1].current_hash if self._events else ""
            
            event = AuditEvent(
                id=str(uuid.uuid4()),
                created_at=datetime.now(timezone.utc),
                event_type=event_type,
                entity_type=entity_type,
                entity_id=entity_id,
                previous_hash=previous_hash,
                current_hash="",
                metadata=metadata or {}
            )
            event.current_hash = event.calculate_hash()
            
            self._events.append(event)
            return event
    
    def get_events_for_entity(self, entity_type: str, entity_id: str) -> List[AuditEvent]:
        """Get all audit events for a specific entity in logging order"""
        with self._lock:
            return [
                e for e in self._events
                if e.entity_type == entity_type and e.entity_id == entity_id
            ]
    
    def get_events_by_type(self, event_type: AuditEventType) -> List[AuditEvent]:
        """Get all audit events of one type in logging order"""
        with self._lock:
            return [e for e in self._events if e.event_type == event_type]
    
    def get_all_events(self) -> List[AuditEvent]:
        with self._lock:
            return list(self._events)
    
    def count_events(self) -> int:
        """Get total number of audit events"""
        with self._lock:
            return len(self._events)
    
    def verify_integrity(self) -> Dict[str, Any]:
        """
        Verify the integrity of the entire audit chain
        
        Returns:
            Dictionary with integrity check results
        """
        result = {
            'valid': True,
            'total_events': 0,
            'hash_errors': [],
            'chain_breaks': []
        }
        
        events = self.get_all_events()
        result['total_events'] = len(events)
        
        previous_hash = ""
        for i, event in enumerate(events):
            if not event.verify_hash():
                result['valid'] = False
                result['hash_errors'].append({
                    'event_id': event.id,
                    'position': i,
                    'expected_hash': event.calculate_hash(),
                    'actual_hash': event.current_hash
                })
            
            if event.previous_hash != previous_hash:
                result['valid'] = False
                result['chain_breaks'].append({
                    'event_id': event.id,
                    'position': i,
                    'expected_previous_hash': previous_hash,
                    'actual_previous_hash': event.previous_hash
                })
            previous_hash = event.current_hash
        
        return result
