from dataclasses import dataclass, field
from typing import Optional, List

from servision.orchestrator.contracts import ExtractedFields, ScanSuccess

NO_TEXT_PLACEHOLDER = "(No text detected)"


@dataclass
class StatusStore:
    """Current asset form plus the bounded activity log exposed by GET /status."""
    busy: bool = False
    asset_id: Optional[str] = None
    model: Optional[str] = None
    serial: Optional[str] = None
    serial_rule: Optional[str] = None
    scanned_text: Optional[str] = None
    last_error: Optional[str] = None
    scan_state: Optional[str] = None        # SessionState value of the latest capture
    logs: List[str] = field(default_factory=list)

    def set_busy(self, v: bool):
        self.busy = v

    def log(self, msg: str):
        self.logs.append(msg)
        if len(self.logs) > 200:
            self.logs = self.logs[-200:]

    def apply_fields(self, text: str, fields: ExtractedFields):
        """Merge a recognition result into the form; absent fields keep what the user had."""
        self.scanned_text = text if text.strip() else NO_TEXT_PLACEHOLDER
        self.model, self.serial = fields.merged_over(self.model, self.serial)
        if fields.serial is not None:
            self.serial_rule = fields.serial_rule
        self.last_error = None

    def apply_scan(self, outcome: ScanSuccess):
        self.asset_id = outcome.decoded
        self.last_error = None

    def clear(self):
        self.asset_id = None
        self.model = None
        self.serial = None
        self.serial_rule = None
        self.scanned_text = None
        self.last_error = None
        self.scan_state = None
