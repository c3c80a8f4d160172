"""
Unit tests for the alert sink.
"""

import logging

from alert_sink import Alert, AlertLevel, AlertSink


class TestAlertSink:
    """Test AlertSink ordering and lifecycle."""

    def test_push_keeps_order(self, alerts):
        alerts.push(Alert("Uploading", AlertLevel.INFO))
        alerts.success("Import complete.")
        alerts.danger("Not Found")

        assert [a.message for a in alerts.all()] == ["Uploading", "Import complete.", "Not Found"]
        assert [a.level for a in alerts] == [AlertLevel.INFO, AlertLevel.SUCCESS, AlertLevel.DANGER]

    def test_identical_alerts_are_kept(self, alerts):
        alerts.danger("Bad Gateway")
        alerts.danger("Bad Gateway")
        assert len(alerts) == 2

    def test_clear(self, alerts):
        alerts.info("first cycle")
        alerts.clear()
        assert alerts.all() == []
        assert len(alerts) == 0

    def test_all_returns_copy(self, alerts):
        alerts.info("one")
        snapshot = alerts.all()
        snapshot.append(Alert("injected"))
        assert len(alerts) == 1

    def test_default_level_is_info(self):
        assert Alert("hello").level is AlertLevel.INFO

    def test_danger_alerts_are_logged_as_errors(self, caplog):
        sink = AlertSink()
        with caplog.at_level(logging.INFO, logger="alert_sink"):
            sink.danger("Internal Server Error")
            sink.success("Import complete.")

        levels = [record.levelno for record in caplog.records]
        assert levels == [logging.ERROR, logging.INFO]
        assert "Internal Server Error" in caplog.records[0].getMessage()
