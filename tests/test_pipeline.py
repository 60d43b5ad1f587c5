import json
from unittest.mock import MagicMock

import pytest

from conftest import LISTING_URL, SELECTORS, FakeDriver, FakeSession, detail_page, link_element
import gig_scrapers.pipeline as pipeline_module
from gig_scrapers.config import MongoDBSettings
from gig_scrapers.database import MongoEventSink, SinkConfigurationError, SinkWriteError
from gig_scrapers.pipeline import PipelineOptions, run_pipeline

FAST = PipelineOptions(settle_delay_sec=0, navigation_retry_delay_sec=0)

LINK_A = "https://dice.test/event/a"
LINK_B = "https://dice.test/event/b"
LINK_C = "https://dice.test/event/c"


def make_driver(fail_navigation=None):
    return FakeDriver(
        pages={
            LINK_A: detail_page(title="Alpha", about="punk all dayer"),
            LINK_B: detail_page(title="Bravo"),
            LINK_C: detail_page(title="Charlie", about="synth wave"),
        },
        listing_batches=[
            [link_element(LINK_A), link_element(LINK_B)],
            [link_element(LINK_C), link_element(LINK_A)],
        ],
        fail_navigation=fail_navigation,
    )


def make_sink():
    sink = MagicMock(spec=MongoEventSink)
    sink.insert_events.side_effect = lambda events: len(events)
    return sink


@pytest.mark.asyncio
async def test_run_collects_extracts_and_hands_off(tmp_path):
    session = FakeSession(make_driver())
    sink = make_sink()
    output_path = tmp_path / "events.json"

    result = await run_pipeline(session, LISTING_URL, SELECTORS, FAST, sink=sink, json_output_path=output_path)

    assert result.links == (LINK_A, LINK_B, LINK_C)
    assert [r.title for r in result.records] == ["Alpha", "Bravo", "Charlie"]
    assert [r.genre for r in result.records] == ["punk", "unclassified", "synth"]
    assert result.failed is False
    assert result.inserted_count == 3
    assert result.output_path == output_path
    assert [d["title"] for d in json.loads(output_path.read_text(encoding="utf-8"))] == ["Alpha", "Bravo", "Charlie"]

    sink.validate_configuration.assert_called_once_with()
    sink.insert_events.assert_called_once()
    assert session.driver.navigations[0] == LISTING_URL
    assert session.closed == 1


@pytest.mark.asyncio
async def test_failed_link_is_skipped_and_run_continues():
    session = FakeSession(make_driver(fail_navigation={LINK_B: -1}))

    result = await run_pipeline(session, LISTING_URL, SELECTORS, FAST)

    assert [r.title for r in result.records] == ["Alpha", "Charlie"]
    assert result.failed is False


@pytest.mark.asyncio
async def test_every_link_failing_completes_without_calling_sink(tmp_path):
    session = FakeSession(make_driver(fail_navigation={LINK_A: -1, LINK_B: -1, LINK_C: -1}))
    sink = make_sink()
    output_path = tmp_path / "events.json"

    result = await run_pipeline(session, LISTING_URL, SELECTORS, FAST, sink=sink, json_output_path=output_path)

    assert result.records == []
    assert result.links == (LINK_A, LINK_B, LINK_C)
    sink.insert_events.assert_not_called()
    assert not output_path.exists()
    assert session.closed == 1


@pytest.mark.asyncio
async def test_listing_that_never_renders_is_a_run_level_failure():
    session = FakeSession(FakeDriver())
    sink = make_sink()

    result = await run_pipeline(session, LISTING_URL, SELECTORS, FAST, sink=sink)

    assert result.failed is True
    assert result.links == ()
    sink.insert_events.assert_not_called()
    assert session.closed == 1


@pytest.mark.asyncio
async def test_session_start_failure_still_releases_session():
    session = FakeSession(start_error=RuntimeError("Executable doesn't exist"))

    result = await run_pipeline(session, LISTING_URL, SELECTORS, FAST)

    assert result.failed is True
    assert session.closed == 1


@pytest.mark.asyncio
async def test_failure_mid_extraction_hands_off_partial_output(monkeypatch):
    session = FakeSession(make_driver())
    sink = make_sink()
    real_extract = pipeline_module.extract_details

    async def extract_then_crash(driver, link, *args, **kwargs):
        if link == LINK_C:
            raise RuntimeError("Target closed")
        return await real_extract(driver, link, *args, **kwargs)

    monkeypatch.setattr(pipeline_module, "extract_details", extract_then_crash)

    result = await run_pipeline(session, LISTING_URL, SELECTORS, FAST, sink=sink)

    assert result.failed is True
    assert [r.title for r in result.records] == ["Alpha", "Bravo"]
    assert result.inserted_count == 2
    assert session.closed == 1


@pytest.mark.asyncio
async def test_close_failure_does_not_block_handoff():
    session = FakeSession(make_driver())

    async def broken_close():
        session.closed += 1
        raise RuntimeError("Browser has been closed")

    session.close = broken_close
    sink = make_sink()

    result = await run_pipeline(session, LISTING_URL, SELECTORS, FAST, sink=sink)

    assert result.inserted_count == 3
    assert session.closed == 1


@pytest.mark.asyncio
async def test_missing_sink_configuration_is_fatal_before_browser_starts():
    session = FakeSession(make_driver())
    sink = make_sink()
    sink.validate_configuration.side_effect = SinkConfigurationError("Missing MongoDB connection information: uri")

    with pytest.raises(SinkConfigurationError):
        await run_pipeline(session, LISTING_URL, SELECTORS, FAST, sink=sink)

    assert session.started == 0
    sink.insert_events.assert_not_called()


@pytest.mark.asyncio
async def test_malformed_mongo_uri_is_fatal_before_browser_starts():
    session = FakeSession(make_driver())
    sink = MongoEventSink(MongoDBSettings(uri="mongodb://localhost:notaport/", database="gigs", collection="events"))

    with pytest.raises(SinkConfigurationError, match="Invalid MongoDB URI"):
        await run_pipeline(session, LISTING_URL, SELECTORS, FAST, sink=sink)

    assert session.started == 0


@pytest.mark.asyncio
async def test_sink_write_error_is_reported_not_raised(tmp_path):
    session = FakeSession(make_driver())
    sink = make_sink()
    sink.insert_events.side_effect = SinkWriteError("Insert into 'gigs.events' failed")
    output_path = tmp_path / "events.json"

    result = await run_pipeline(session, LISTING_URL, SELECTORS, FAST, sink=sink, json_output_path=output_path)

    assert result.inserted_count is None
    assert "failed" in result.sink_error
    assert output_path.exists()
