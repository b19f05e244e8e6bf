"""
Run report tests.
"""

import json

from automation.report import RunReport


class TestRunReport:

    def test_finish_writes_index_and_steps(self, tmp_path):
        report = RunReport(tmp_path / "report", "155071351")
        report.add("step 1/7 gotoSearch")
        report.add("Automation failed: Save button not found", level="error",
                   screenshot=str(tmp_path / "report" / "failure.png"))

        index = report.finish("failed", 1)

        assert index == tmp_path / "report" / "index.html"
        steps = json.loads((tmp_path / "report" / "steps.json").read_text(encoding="utf-8"))
        assert steps["incidentId"] == "155071351"
        assert steps["outcome"] == "failed"
        assert steps["exitCode"] == 1
        assert [step["message"] for step in steps["steps"]] == [
            "step 1/7 gotoSearch", "Automation failed: Save button not found",
        ]
        assert steps["steps"][1]["level"] == "error"

        html = index.read_text(encoding="utf-8")
        assert "incident 155071351" in html
        assert '<img src="failure.png"' in html
        assert '<tr class="error">' in html

    def test_content_escaped(self, tmp_path):
        report = RunReport(tmp_path, "<1>")
        report.add('<script>alert("x")</script>')
        html = report.render()
        assert "<script>" not in html
        assert "&lt;script&gt;" in html
        assert "incident &lt;1&gt;" in html

    def test_screenshot_path_creates_directory(self, tmp_path):
        report = RunReport(tmp_path / "nested" / "report", "1")
        path = report.screenshot_path("failure")
        assert path.parent.is_dir()
        assert path.name == "failure.png"
