from portfolio_tracker.notices import NoticeBoard, NoticeLevel


class TestNoticeBoard:
    def test_post_and_drain(self):
        board = NoticeBoard()
        board.success("Saved")
        board.error("Nope")
        assert [n.level for n in board.pending] == [NoticeLevel.SUCCESS, NoticeLevel.ERROR]
        drained = board.drain()
        assert [n.message for n in drained] == ["Saved", "Nope"]
        assert board.pending == []

    def test_listener_sees_every_notice(self):
        seen = []
        board = NoticeBoard(listener=seen.append)
        board.info("a")
        board.warning("b")
        assert [n.message for n in seen] == ["a", "b"]

    def test_icons(self):
        board = NoticeBoard()
        assert board.error("x").icon == "🚫"
        assert board.success("y").icon == "🎉"
