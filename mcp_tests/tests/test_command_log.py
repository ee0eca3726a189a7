import logging

from core.command_log import CommandLog, LogSource


def test_log_keeps_order_and_sources():
    log = CommandLog()
    log.user("navigate")
    log.agent("list_items")
    log.system("done")

    assert [(e.source, e.message) for e in log.entries()] == [
        (LogSource.USER, "navigate"),
        (LogSource.AGENT, "list_items"),
        (LogSource.SYSTEM, "done"),
    ]
    assert log.entries()[0].to_dict()["source"] == "user"


def test_log_drops_oldest_beyond_limit():
    log = CommandLog(maxlen=3)
    for i in range(5):
        log.system(f"m{i}")

    assert len(log) == 3
    assert [e.message for e in log.entries()] == ["m2", "m3", "m4"]


def test_tail():
    log = CommandLog()
    for i in range(4):
        log.user(str(i))

    assert [e.message for e in log.tail(2)] == ["2", "3"]
    assert log.tail(0) == []
    assert len(log.tail(10)) == 4


def test_entries_are_mirrored_to_logging(caplog):
    with caplog.at_level(logging.INFO, logger="core.command_log"):
        CommandLog().agent("copy_item")
    assert "[agent] copy_item" in caplog.text
