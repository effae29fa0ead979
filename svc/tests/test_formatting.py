from datetime import timedelta

from tsm.formatting import format_record, format_status, status_sections
from tsm.models import DeviceStatus

from conftest import at


class TestRecordLayout:
    def test_exact_record(self, tsm_config, profile):
        line = format_record(
            timedelta(seconds=2),
            tsm_config.general,
            at(2026, 10, 19, 12, 0, 2),
            {"A": "10", "B": "20"},
            profile.data_oids,
        )
        assert line == "2026 10 19 12 00 02 BK TSM1 00 2 A:10.0 B:20.0"

    def test_missing_channel_value_is_blank(self, tsm_config, profile):
        line = format_record(
            timedelta(seconds=60),
            tsm_config.general,
            at(2026, 1, 5, 3, 4, 0),
            {"A": "7"},
            profile.data_oids,
        )
        assert line == "2026 01 05 03 04 00 BK TSM1 00 60 A:7.0 B:"

    def test_static_oids_never_appear(self, tsm_config, profile):
        line = format_record(
            timedelta(seconds=2),
            tsm_config.general,
            at(2026, 10, 19, 12, 0, 2),
            {"A": "1", "B": "2", "fw": "2.4.1", "sys.name": "pdu-east"},
            profile.data_oids,
        )
        assert "2.4.1" not in line
        assert "pdu-east" not in line


class TestStatusTable:
    def test_sections_follow_profile(self, profile):
        sections = status_sections(profile, {"fw": "2.4.1", "A": "10", "B": "20"})
        assert [s.name for s in sections] == ["static", "status", "measurements", "alarms", "faults"]
        static = sections[0]
        assert [(f.label, f.value) for f in static.fields] == [("System Name", ""), ("Firmware Version", "2.4.1")]
        assert [f.value for f in sections[2].fields] == ["10.0", "20.0"]

    def test_format_status_labels(self, profile):
        status = DeviceStatus(
            ts=at(2026, 10, 19, 12, 0, 2).timestamp(),
            host="10.0.0.5",
            model="PDU-1",
            model_group="PDU",
            sections=status_sections(profile, {"fw": "2.4.1", "A": "10", "B": "20"}),
        )
        text = format_status(status, port=161)
        lines = text.splitlines()
        assert any(line.endswith("Host:  10.0.0.5:161") for line in lines)
        assert any(line.endswith("Model:  PDU-1 (PDU)") for line in lines)
        assert any(line.strip() == "Channel A:  10.0" for line in lines)
        assert f"{'Firmware Version':>40}:  2.4.1" in lines
