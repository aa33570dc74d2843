"""
Test suite for audit module

Tests hash chaining, tamper detection and metadata serialization.
"""

import threading
from decimal import Decimal

from atm_core.storage import InMemoryStorage
from atm_core.audit import AuditTrail, AuditEventType
from atm_core.state_machine import ATMState


class TestAuditTrail:
    """Test hash-chained audit trail"""

    def setup_method(self):
        self.storage = InMemoryStorage()
        self.audit_trail = AuditTrail(self.storage)

    def test_chain_links_events(self):
        first = self.audit_trail.log_event(AuditEventType.DEPOSIT_COMPLETED, "account", "ACC-1")
        second = self.audit_trail.log_event(AuditEventType.WITHDRAWAL_COMPLETED, "account", "ACC-1")

        assert first.previous_hash == ""
        assert second.previous_hash == first.current_hash
        assert first.verify_hash()
        assert self.audit_trail.verify_integrity()["valid"]

    def test_metadata_serialization(self):
        event = self.audit_trail.log_event(
            AuditEventType.ATM_STATE_CHANGED, "atm", "ATM-001",
            metadata={"amount": Decimal('12.50'), "to": ATMState.ACTIVE,
                      "nested": {"values": [Decimal('1.1')]}}
        )

        assert event.metadata["amount"] == "12.50"
        assert event.metadata["to"] == "active"
        assert event.metadata["nested"] == {"values": ["1.1"]}

    def test_tampering_is_detected(self):
        event = self.audit_trail.log_event(
            AuditEventType.DEPOSIT_COMPLETED, "account", "ACC-1",
            metadata={"amount": "100"}
        )
        self.audit_trail.log_event(AuditEventType.DEPOSIT_COMPLETED, "account", "ACC-1")

        record = self.storage.load("audit_events", event.id)
        record["metadata"]["amount"] = "1000000"
        self.storage.save("audit_events", event.id, record)

        result = self.audit_trail.verify_integrity()
        assert not result["valid"]
        assert result["hash_errors"][0]["event_id"] == event.id

    def test_rolled_back_events_leave_chain_intact(self):
        self.audit_trail.log_event(AuditEventType.DEPOSIT_COMPLETED, "account", "ACC-1")
        try:
            with self.storage.atomic():
                self.audit_trail.log_event(AuditEventType.WITHDRAWAL_COMPLETED, "account", "ACC-1")
                raise RuntimeError("abort")
        except RuntimeError:
            pass
        self.audit_trail.log_event(AuditEventType.DEPOSIT_COMPLETED, "account", "ACC-1")

        assert self.audit_trail.count_events() == 2
        assert self.audit_trail.verify_integrity()["valid"]

    def test_head_is_rebuilt_after_nested_rollback(self):
        first = self.audit_trail.log_event(AuditEventType.DEPOSIT_COMPLETED, "account", "ACC-1")
        try:
            with self.storage.atomic():
                self.audit_trail.log_event(AuditEventType.DEPOSIT_COMPLETED, "account", "ACC-1")
                self.audit_trail.log_event(AuditEventType.WITHDRAWAL_COMPLETED, "account", "ACC-1")
                raise RuntimeError("abort")
        except RuntimeError:
            pass
        last = self.audit_trail.log_event(AuditEventType.PIN_CHANGED, "customer", "1")

        assert last.previous_hash == first.current_hash
        assert last.metadata["sequence"] == 2

    def test_logging_does_not_reload_history(self, monkeypatch):
        """Test the chain head comes from memory rather than a table scan"""
        for _ in range(3):
            self.audit_trail.log_event(AuditEventType.DEPOSIT_COMPLETED, "account", "ACC-1")

        def fail_load_all(table):
            raise AssertionError(f"unexpected scan of {table}")

        monkeypatch.setattr(self.storage, "load_all", fail_load_all)
        event = self.audit_trail.log_event(AuditEventType.DEPOSIT_COMPLETED, "account", "ACC-1")

        assert event.metadata["sequence"] == 4

    def test_existing_events_are_picked_up(self):
        head = self.audit_trail.log_event(AuditEventType.DEPOSIT_COMPLETED, "account", "ACC-1")

        reopened = AuditTrail(self.storage)
        event = reopened.log_event(AuditEventType.DEPOSIT_COMPLETED, "account", "ACC-1")

        assert event.previous_hash == head.current_hash
        assert reopened.verify_integrity()["valid"]

    def test_disabled_trail_logs_nothing(self):
        trail = AuditTrail(InMemoryStorage(), enabled=False)

        assert trail.log_event(AuditEventType.PIN_CHANGED, "customer", "1") is None
        assert trail.count_events() == 0

    def test_concurrent_event_logging(self):
        """Test that concurrent event logging maintains chain integrity"""
        errors = []

        def create_events(start_id: int):
            try:
                for i in range(5):
                    self.audit_trail.log_event(
                        AuditEventType.EMERGENCY_REPORTED, "atm", "ATM-001",
                        metadata={"thread_id": start_id, "sequence_in_thread": i}
                    )
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=create_events, args=(i,)) for i in range(3)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert self.audit_trail.count_events() == 15
        assert self.audit_trail.verify_integrity()["valid"]
