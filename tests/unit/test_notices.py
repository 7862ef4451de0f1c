"""
Unit tests for the notice bus.
"""

from scapwb.engine.notices import Completion, Notice, NoticeBus, NoticeKind, NoticeRecorder


class TestNoticeBus:
    """Tests for NoticeBus."""

    def test_fan_out_in_order(self) -> None:
        bus = NoticeBus()
        first = NoticeRecorder()
        second = NoticeRecorder()
        bus.subscribe(first)
        bus.subscribe(second)

        bus.info("Querying capabilities...")
        bus.warning("stderr output")
        bus.error("failed")
        bus.publish(Completion(cancelled=True))

        expected = [
            Notice(NoticeKind.INFO, "Querying capabilities..."),
            Notice(NoticeKind.WARNING, "stderr output"),
            Notice(NoticeKind.ERROR, "failed"),
            Completion(cancelled=True),
        ]
        assert first.events == expected
        assert second.events == expected

    def test_unsubscribe(self) -> None:
        bus = NoticeBus()
        recorder = NoticeRecorder()
        unsubscribe = bus.subscribe(recorder)

        unsubscribe()
        unsubscribe()
        bus.info("ignored")

        assert recorder.events == []

    def test_progress_notice(self) -> None:
        bus = NoticeBus()
        recorder = NoticeRecorder()
        bus.subscribe(recorder)

        bus.progress("xccdf_rule_sshd", "fail")

        notice = recorder.notices(NoticeKind.PROGRESS)[0]
        assert notice.rule_id == "xccdf_rule_sshd"
        assert notice.result == "fail"
        assert notice.message == "xccdf_rule_sshd: fail"


class TestNoticeRecorder:
    """Tests for NoticeRecorder filtering."""

    def test_filters(self) -> None:
        recorder = NoticeRecorder()
        recorder(Notice(NoticeKind.INFO, "a"))
        recorder(Notice(NoticeKind.ERROR, "b"))
        recorder(Completion(cancelled=False))

        assert [n.message for n in recorder.notices()] == ["a", "b"]
        assert [n.message for n in recorder.notices(NoticeKind.ERROR)] == ["b"]
        assert recorder.completions() == [Completion(cancelled=False)]
