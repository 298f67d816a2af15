from pathlib import Path

from ddx_viewer.conversion.converter import FormatConverter
from ddx_viewer.conversion.error_channel import ErrorChannel, FailureNotice
from ddx_viewer.conversion.errors import ErrorKind, ProcessError, UnsupportedFormatError
from ddx_viewer.conversion.formats import FileFormat
from ddx_viewer.conversion.qt_bridge import ConversionController, ErrorNotifier
from ddx_viewer.conversion.results import ConversionRequest
from tests.helpers.fakes import FakeLauncher


def test_controller_emits_finished_on_gui_thread(qtbot, provisioner, fake_launcher, ddx_file, tmp_path: Path):
    conv = FormatConverter(provisioner, launcher=fake_launcher)
    controller = ConversionController(conv)

    with qtbot.waitSignal(controller.conversion_finished, timeout=5000) as blocker:
        controller.start(ConversionRequest.create(ddx_file, tmp_path / "out", FileFormat.PNG))

    result = blocker.args[0]
    assert result.ok
    assert result.artifact.is_file()
    conv.shutdown()


def test_controller_reports_process_failure(qtbot, provisioner, ddx_file, tmp_path: Path):
    conv = FormatConverter(provisioner, launcher=FakeLauncher(exit_code=1, stderr="bad header"))
    controller = ConversionController(conv)

    with qtbot.waitSignal(controller.conversion_failed, timeout=5000) as blocker:
        controller.start(ConversionRequest.create(ddx_file, tmp_path / "out", FileFormat.PNG))

    assert isinstance(blocker.args[0], ProcessError)
    conv.shutdown()


def test_controller_rejects_unsupported_format_without_queueing(qtbot, provisioner, fake_launcher, ddx_file):
    conv = FormatConverter(provisioner, launcher=fake_launcher)
    controller = ConversionController(conv)

    with qtbot.waitSignal(controller.conversion_failed, timeout=1000) as blocker:
        future = controller.start(ConversionRequest.create(ddx_file, ddx_file.parent, "xyz"))

    assert future is None
    assert isinstance(blocker.args[0], UnsupportedFormatError)
    assert fake_launcher.calls == []
    conv.shutdown()


def test_error_notifier_forwards_channel_notices(qtbot):
    channel = ErrorChannel()
    notifier = ErrorNotifier(channel)

    with qtbot.waitSignal(notifier.error_reported, timeout=1000) as blocker:
        channel.publish(FailureNotice(ErrorKind.POSTCONDITION, "missing output"))

    assert blocker.args[0].message == "missing output"
    notifier.close()
    assert channel.subscriber_count == 0
