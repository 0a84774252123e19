"""Tests for NoticeBoard: toast expiry and persistent banners."""

from src.view.notices import NoticeBoard


class FakeClock:
    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestNoticeBoard:
    def test_toast_expires(self) -> None:
        clock = FakeClock()
        board = NoticeBoard(toast_ttl_s=3.0, clock=clock)
        board.toast("Failed to update candidate. Reverting changes.")
        clock.now += 2.9
        assert [n.message for n in board.active()] == [
            "Failed to update candidate. Reverting changes.",
        ]
        clock.now += 0.2
        assert board.active() == []

    def test_banner_persists(self) -> None:
        clock = FakeClock()
        board = NoticeBoard(clock=clock)
        banner = board.banner("Failed to load candidates")
        clock.now += 3600
        assert board.active() == [banner]

    def test_dismiss(self) -> None:
        board = NoticeBoard(clock=FakeClock())
        first = board.banner("one")
        second = board.banner("two")
        board.dismiss(first.id)
        assert board.active() == [second]

    def test_ids_unique_and_kinds(self) -> None:
        board = NoticeBoard(clock=FakeClock())
        toast = board.toast("t")
        banner = board.banner("b")
        assert toast.id != banner.id
        assert (toast.kind, banner.kind) == ("toast", "banner")
        assert banner.expires_at is None

    def test_clear(self) -> None:
        board = NoticeBoard(clock=FakeClock())
        board.toast("t")
        board.banner("b")
        board.clear()
        assert board.active() == []
