"""
Run Report.

Minimal HTML report for one automation run: a timestamped step list,
failure screenshots and a machine-readable steps.json, written to the
report directory (REPORT_DIR). The worker uploads the directory to blob
storage afterwards, so index.html is the entry point it looks for.
"""

import json
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from html import escape
from pathlib import Path
from typing import List, Optional

from config.defaults import ReportDefaults


@dataclass
class ReportStep:
    timestamp: str
    message: str
    level: str = "info"
    screenshot: Optional[str] = None


@dataclass
class RunReport:
    report_dir: Path
    incident_id: str
    steps: List[ReportStep] = field(default_factory=list)
    outcome: Optional[str] = None
    exit_code: Optional[int] = None

    def __post_init__(self):
        self.report_dir = Path(self.report_dir)

    def add(self, message: str, level: str = "info", screenshot: Optional[str] = None) -> ReportStep:
        step = ReportStep(
            timestamp=datetime.now(timezone.utc).isoformat(),
            message=message,
            level=level,
            screenshot=screenshot,
        )
        self.steps.append(step)
        return step

    def screenshot_path(self, name: str) -> Path:
        self.report_dir.mkdir(parents=True, exist_ok=True)
        return self.report_dir / f"{name}.png"

    def finish(self, outcome: str, exit_code: int) -> Path:
        """Write index.html and steps.json; returns the index path."""
        self.outcome = outcome
        self.exit_code = exit_code
        self.report_dir.mkdir(parents=True, exist_ok=True)

        (self.report_dir / "steps.json").write_text(json.dumps({
            'incidentId': self.incident_id,
            'outcome': outcome,
            'exitCode': exit_code,
            'steps': [asdict(step) for step in self.steps],
        }, indent=2), encoding="utf-8")

        index_path = self.report_dir / ReportDefaults.INDEX_FILE
        index_path.write_text(self.render(), encoding="utf-8")
        return index_path

    def render(self) -> str:
        rows = []
        for step in self.steps:
            shot = ""
            if step.screenshot:
                name = escape(Path(step.screenshot).name)
                shot = f'<br><a href="{name}"><img src="{name}" alt="screenshot" width="480"></a>'
            rows.append(
                f'<tr class="{escape(step.level)}"><td>{escape(step.timestamp)}</td>'
                f'<td>{escape(step.message)}{shot}</td></tr>'
            )

        return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>Create bridge - incident {escape(str(self.incident_id))}</title>
    <style>
        body {{ font-family: "Segoe UI", Arial, sans-serif; margin: 24px; }}
        table {{ border-collapse: collapse; width: 100%; }}
        td {{ border-bottom: 1px solid #ddd; padding: 6px 8px; vertical-align: top; font-size: 13px; }}
        tr.error td {{ color: #b00020; }}
    </style>
</head>
<body>
    <h1>Create bridge - incident {escape(str(self.incident_id))}</h1>
    <p>Outcome: <strong>{escape(str(self.outcome))}</strong> (exit code {escape(str(self.exit_code))})</p>
    <table>{''.join(rows)}</table>
</body>
</html>"""
