"""Tests for the diagnostics collector and Markdown report."""

from datetime import datetime

import pytest

from core.shop.diagnostics import (
    MAX_UNMATCHED_ROWS,
    DiagnosticsCollector,
    default_report_path,
    rotate_reports,
)
from core.shop.models import SaleLocation

NOW = datetime(2026, 3, 14, 9, 26, 53)


@pytest.fixture
def collector():
    c = DiagnosticsCollector()
    c.record_excluded_npc(1003, "Lost Lenny", 262147, "Orphan Shop")
    c.record_excluded_npc(1004, "Lost Larry", 262147, "Orphan Shop")
    c.record_unmatched_vendor(262148, 4006)
    return c


class TestRecording:
    def test_excluded_dedup_on_npc_and_vendor(self, collector):
        collector.record_excluded_npc(1003, "Lost Lenny", 262147, "Orphan Shop")
        assert collector.excluded_npc_count == 2
        collector.record_excluded_npc(1003, "Lost Lenny", 262145, "Ore Merchant")
        assert collector.excluded_npc_count == 3

    def test_unmatched_samples_capped(self, collector):
        for item_id in (4007, 4008, 4009, 4010):
            collector.record_unmatched_vendor(262148, item_id)
        (rec,) = collector.unmatched_records()
        assert rec.item_ids == (4006, 4007, 4008)
        assert collector.unmatched_vendor_count == 1

    def test_reset(self, collector):
        collector.reset()
        assert (collector.excluded_npc_count, collector.unmatched_vendor_count) == (0, 0)


class TestReport:
    def test_summary_counts(self, collector):
        text = collector.render_report(5, {4006: "Bronze Nugget"}, now=NOW)
        assert "- Items indexed: 5" in text
        assert "- Excluded NPCs (no location): 2" in text
        assert "- Unmatched vendors (no NPC): 1" in text
        assert "Generated: 2026-03-14 09:26:53" in text
        assert "| 262148 | Bronze Nugget |" in text
        assert "| 1003 | Lost Lenny | 1 | Orphan Shop |" in text

    def test_unmatched_rows_capped(self):
        c = DiagnosticsCollector()
        for vid in range(MAX_UNMATCHED_ROWS + 5):
            c.record_unmatched_vendor(vid + 1, 1)
        text = c.render_report(0, {}, now=NOW)
        assert "(5 more vendors omitted)" in text
        assert f"| {MAX_UNMATCHED_ROWS + 1} |" not in text

    def test_generate_writes_file(self, collector, tmp_path):
        out = default_report_path(tmp_path, now=NOW)
        msg = collector.generate_report(out, 5, {})
        assert out.name == "shop-diagnostics-20260314-092653.md"
        assert out.exists()
        assert str(out) in msg

    def test_generate_reports_write_failure(self, collector, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("x", encoding="utf-8")
        msg = collector.generate_report(blocker / "report.md", 5, {})
        assert msg.startswith("Failed to write diagnostics report")


class TestRotation:
    def _seed(self, d, n):
        for i in range(n):
            (d / f"shop-diagnostics-20260101-00000{i}.md").write_text("old", encoding="utf-8")

    def test_oldest_removed_before_write(self, collector, tmp_path):
        self._seed(tmp_path, 5)
        (tmp_path / "notes.md").write_text("keep", encoding="utf-8")
        collector.generate_report(default_report_path(tmp_path, now=NOW), 5, {})
        names = sorted(p.name for p in tmp_path.glob("shop-diagnostics-*"))
        assert len(names) == 5
        assert "shop-diagnostics-20260101-000000.md" not in names
        assert (tmp_path / "notes.md").exists()

    def test_below_threshold_keeps_all(self, tmp_path):
        self._seed(tmp_path, 4)
        assert rotate_reports(tmp_path) == []

    def test_missing_directory(self, tmp_path):
        assert rotate_reports(tmp_path / "none") == []


class TestTroubleshooting:
    def _loc(self, vendor_id):
        return SaleLocation(vendor_id, "V", "Ann", 128, "Upper Decks", "", 10, 11.3, 11.3)

    def test_log_search_counts_valid_and_excluded(self, collector):
        lines = collector.log_search(4005, "Orphan Gem", [], [262147])
        assert lines[0] == "Search diagnostics: item=4005 name=Orphan Gem found=0"
        assert "vendor 262147 (valid:0/excluded:2)" in lines[-1]

    def test_log_search_lists_found_locations(self, collector):
        lines = collector.log_search(4001, "Iron Ore", [self._loc(262145)], [262145])
        assert any("found: Upper Decks / Ann" in l for l in lines)
        assert "vendor 262145 (valid:1/excluded:0)" in lines[-1]

    def test_explain_missing_once_per_item(self, collector):
        first = collector.explain_missing_item(4006, "Bronze Nugget", [262148])
        assert "no NPC links to it" in first[1]
        assert collector.explain_missing_item(4006, "Bronze Nugget", [262148]) == []

    def test_explain_unlocated_npcs(self, collector):
        lines = collector.explain_missing_item(4005, "Orphan Gem", [262147])
        assert "Lost Lenny(1003)" in lines[1]
        assert "Lost Larry(1004)" in lines[1]

    def test_explain_without_vendor_rows(self, collector):
        lines = collector.explain_missing_item(1, "Gil", [])
        assert lines[1] == "  no vendor row carries this item"
