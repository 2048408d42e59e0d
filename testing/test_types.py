"""测试全局枚举类型。"""

import pytest

from avdemu.types import BootOutcome, DisplaySize, FontScale, NightMode, TransportStatus


class TestTransportStatus:
    def test_online_only_for_device(self):
        assert TransportStatus.device.online
        assert not TransportStatus.offline.online
        assert not TransportStatus.unauthorized.online

    def test_from_value(self):
        assert TransportStatus("no") is TransportStatus.no_permissions

    def test_invalid_value_message(self):
        with pytest.raises(ValueError, match="不是合法的"):
            TransportStatus("connecting")


class TestBootOutcome:
    def test_ok(self):
        assert BootOutcome.booted.ok
        for outcome in (BootOutcome.failed, BootOutcome.exited, BootOutcome.timeout):
            assert not outcome.ok


class TestFontScale:
    """字体缩放档位。"""

    def test_values(self):
        assert [m.value for m in FontScale] == ["0.85", "1.0", "1.15", "1.30"]

    def test_str_compare(self):
        assert FontScale.large == "1.15"


class TestDisplaySize:
    def test_values(self):
        assert DisplaySize.small == 0.85
        assert DisplaySize.default == 1.0
        assert DisplaySize.large == 1.1625
        assert DisplaySize.largest == 1.325
        assert DisplaySize.ultra == 1.5

    def test_lookup_by_name(self):
        assert DisplaySize["ultra"] is DisplaySize.ultra


class TestNightMode:
    def test_from_enabled(self):
        assert NightMode.from_enabled(True) is NightMode.yes
        assert NightMode.from_enabled(False) is NightMode.no
