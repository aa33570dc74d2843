"""
Audit Trail Module

Hash-chained audit log with SHA-256 for tamper detection.
Every state change in the ATM is logged here.
"""

import hashlib
import json
import threading
from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Dict, List, Optional, Any
from enum import Enum
from decimal import Decimal
import uuid

from .storage import StorageInterface, StorageRecord


class AuditEventType(Enum):
    """Types of audit events"""
    # Seed events
    ACCOUNT_OPENED = "account_opened"
    CUSTOMER_REGISTERED = "customer_registered"
    TECHNICIAN_REGISTERED = "technician_registered"

    # Session events
    CUSTOMER_LOGIN_SUCCESS = "customer_login_success"
    CUSTOMER_LOGIN_FAILED = "customer_login_failed"
    TECHNICIAN_LOGIN_SUCCESS = "technician_login_success"
    TECHNICIAN_LOGIN_FAILED = "technician_login_failed"

    # Transaction events
    DEPOSIT_COMPLETED = "deposit_completed"
    WITHDRAWAL_COMPLETED = "withdrawal_completed"
    TRANSFER_COMPLETED = "transfer_completed"
    TRANSACTION_FAILED = "transaction_failed"

    # Account management events
    PIN_CHANGED = "pin_changed"
    EMERGENCY_REPORTED = "emergency_reported"

    # Machine events
    ATM_STATE_CHANGED = "atm_state_changed"
    SELF_CHECK_FAILED = "self_check_failed"
    CASH_REFILLED = "cash_refilled"


@dataclass
class AuditEvent(StorageRecord):
    """
    Immutable audit event with hash chaining for tamper detection
    """
    event_type: AuditEventType
    entity_type: str  # customer, account, technician, atm
    entity_id: str
    previous_hash: str
    current_hash: str
    metadata: Dict[str, Any]
    user_id: Optional[str] = None  # Card number or technician username

    def __post_init__(self):
        if self.metadata:
            self._serialize_metadata()

    def _serialize_metadata(self) -> None:
        """Convert metadata values to JSON-serializable format"""
        def convert_value(value):
            if isinstance(value, Decimal):
                return str(value)
            elif isinstance(value, datetime):
                return value.isoformat()
            elif isinstance(value, Enum):
                return value.value
            elif isinstance(value, dict):
                return {k: convert_value(v) for k, v in value.items()}
            elif isinstance(value, list):
                return [convert_value(v) for v in value]
            else:
                return value

        self.metadata = {k: convert_value(v) for k, v in self.metadata.items()}

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
            'user_id': self.user_id,
            'metadata': self.metadata
        }

        json_data = json.dumps(hash_data, sort_keys=True, separators=(',', ':'))
        return hashlib.sha256(json_data.encode('utf-8')).hexdigest()

    def verify_hash(self) -> bool:
        """Verify that the current hash is correct"""
        return self.current_hash == self.calculate_hash()

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result['event_type'] = self.event_type.value
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AuditEvent':
        if isinstance(data['created_at'], str):
            data['created_at'] = datetime.fromisoformat(data['created_at'])
        if isinstance(data['updated_at'], str):
            data['updated_at'] = datetime.fromisoformat(data['updated_at'])
        if isinstance(data['event_type'], str):
            data['event_type'] = AuditEventType(data['event_type'])
        return cls(**data)


class AuditTrail:
    """
    Hash-chained audit trail for tamper detection

    Events carry a sequence number so ordering survives identical timestamps.
    The chain head is cached; when a storage rollback removes the cached head
    event it is rebuilt from the stored events.
    """

    def __init__(self, storage: StorageInterface, table_name: str = "audit_events",
                 enabled: bool = True):
        self.storage = storage
        self.table_name = table_name
        self.enabled = enabled
        self._lock = threading.Lock()
        self._last_event_id: Optional[str] = None
        self._last_hash = ""
        self._sequence = 0
        self._resync()

    def _sorted_events(self) -> List[AuditEvent]:
        records = sorted(self.storage.load_all(self.table_name),
                         key=lambda x: x.get('metadata', {}).get('sequence', 0))
        return [AuditEvent.from_dict(data) for data in records]

    def _resync(self) -> None:
        events = self._sorted_events()
        if events:
            head = events[-1]
            self._last_event_id = head.id
            self._last_hash = head.current_hash
            self._sequence = head.metadata.get('sequence', len(events))
        else:
            self._last_event_id = None
            self._last_hash = ""
            self._sequence = 0

    def log_event(
        self,
        event_type: AuditEventType,
        entity_type: str,
        entity_id: str,
        metadata: Optional[Dict[str, Any]] = None,
        user_id: Optional[str] = None
    ) -> Optional[AuditEvent]:
        """
        Log an audit event with hash chaining

        Returns:
            Created AuditEvent, or None when auditing is disabled
        """
        if not self.enabled:
            return None

        with self._lock:
            # A rolled-back event must never become a parent
            if (self._last_event_id is not None
                    and not self.storage.exists(self.table_name, self._last_event_id)):
                self._resync()

            now = datetime.now(timezone.utc)
            event_metadata = dict(metadata or {})
            event_metadata['sequence'] = self._sequence + 1

            event = AuditEvent(
                id=str(uuid.uuid4()),
                created_at=now,
                updated_at=now,
                event_type=event_type,
                entity_type=entity_type,
                entity_id=entity_id,
                previous_hash=self._last_hash,
                current_hash="",
                user_id=user_id,
                metadata=event_metadata
            )
            event.current_hash = event.calculate_hash()

            self.storage.save(self.table_name, event.id, event.to_dict())
            self._last_event_id = event.id
            self._last_hash = event.current_hash
            self._sequence += 1
            return event

    def get_events_for_entity(self, entity_type: str, entity_id: str) -> List[AuditEvent]:
        """Get all audit events for a specific entity, oldest first"""
        return [e for e in self._sorted_events()
                if e.entity_type == entity_type and e.entity_id == entity_id]

    def get_events_by_type(self, event_type: AuditEventType) -> List[AuditEvent]:
        """Get all audit events of one type, oldest first"""
        return [e for e in self._sorted_events() if e.event_type == event_type]

    def count_events(self) -> int:
        return self.storage.count(self.table_name)

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

        events = self._sorted_events()
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
