"""Tests for the async search pipeline."""

from __future__ import annotations

import asyncio

import pytest

from app.models.state import ANALYSIS_PHRASES, FALLBACK_ERROR, AppStatus
from app.services.errors import AnalysisError, GenerationError
from app.services.search_controller import SearchController

from conftest import settle


@pytest.fixture
def controller(generate, analyze) -> SearchController:
    return SearchController(generate, analyze, phrase_interval=0.01)


def _other_tasks() -> set[asyncio.Task]:
    return asyncio.all_tasks() - {asyncio.current_task()}


@pytest.mark.asyncio
async def test_submit_enters_generating_synchronously(controller, generate):
    state = controller.submit("Anatomy of a Dragon")

    assert state.status is AppStatus.GENERATING
    assert controller.state.status is AppStatus.GENERATING
    assert generate.calls == []

    await settle()
    assert generate.calls == [("Anatomy of a Dragon",)]
    await controller.aclose()


@pytest.mark.asyncio
async def test_blank_submit_does_nothing(controller, generate):
    before = controller.state
    assert controller.submit("   ") is before

    await settle()
    assert generate.calls == []
    assert controller.state.status is AppStatus.IDLE


@pytest.mark.asyncio
async def test_dragon_scenario(controller, generate, analyze, image, analysis):
    controller.submit("Anatomy of a Dragon")
    await settle()

    generate.resolve(image)
    await settle()

    state = controller.state
    assert state.status is AppStatus.ANALYZING
    assert state.data.image == image
    assert state.data.analysis is None
    assert analyze.calls == [("Anatomy of a Dragon", image.base64)]

    analyze.resolve(analysis)
    await controller.join()

    state = controller.state
    assert state.status is AppStatus.COMPLETE
    assert state.data.image == image
    assert state.data.analysis.segments == analysis.segments


@pytest.mark.asyncio
async def test_analysis_waits_for_generation(controller, generate, analyze):
    controller.submit("Q")
    await settle()

    assert analyze.calls == []
    generate.fail(GenerationError("boom"))
    await controller.join()
    assert analyze.calls == []


@pytest.mark.asyncio
async def test_generation_failure(controller, generate):
    controller.submit("X")
    await settle()

    generate.fail(GenerationError("quota exceeded"))
    await controller.join()

    state = controller.state
    assert state.status is AppStatus.IDLE
    assert state.data is None
    assert state.query == ""
    assert state.error == "quota exceeded"


@pytest.mark.asyncio
async def test_analysis_failure_without_message(controller, generate, analyze, image):
    controller.submit("Y")
    await settle()
    generate.resolve(image)
    await settle()

    analyze.fail(AnalysisError())
    await controller.join()

    state = controller.state
    assert state.status is AppStatus.IDLE
    assert state.data is None
    assert state.error == FALLBACK_ERROR


@pytest.mark.asyncio
async def test_unexpected_error_uses_its_message(controller, generate):
    controller.submit("Z")
    await settle()

    generate.fail(RuntimeError("network unreachable"))
    await controller.join()

    assert controller.state.error == "network unreachable"


@pytest.mark.asyncio
async def test_reset_during_analysis(controller, generate, analyze, image, analysis):
    controller.submit("Q")
    await settle()
    generate.resolve(image)
    await settle()

    state = controller.reset()
    await controller.join()

    assert (state.status, state.data, state.query, state.error) == (
        AppStatus.IDLE,
        None,
        "",
        None,
    )
    assert analyze.futures[0].cancelled()
    assert _other_tasks() == set()


@pytest.mark.asyncio
async def test_resubmission_discards_superseded_search(
    controller, generate, analyze, image, other_image
):
    controller.submit("first")
    await settle()

    controller.submit("second")
    await settle()

    assert generate.futures[0].cancelled()
    assert generate.calls == [("first",), ("second",)]

    generate.resolve(other_image, index=1)
    await settle()

    state = controller.state
    assert state.query == "second"
    assert state.data.image == other_image
    await controller.aclose()


@pytest.mark.asyncio
async def test_phrases_rotate_only_while_analyzing(
    controller, generate, analyze, image, analysis
):
    controller.submit("Q")
    await settle()
    generate.resolve(image)
    await settle()
    assert controller.state.phrase == ANALYSIS_PHRASES[0]

    seen = {controller.state.phrase}
    for _ in range(20):
        await asyncio.sleep(0.01)
        seen.add(controller.state.phrase)
    assert len(seen) > 1
    assert seen <= set(ANALYSIS_PHRASES)

    analyze.resolve(analysis)
    await controller.join()

    # The ticker task is gone and the phrase no longer changes
    assert _other_tasks() == set()
    final_index = controller.state.phrase_index
    await asyncio.sleep(0.05)
    assert controller.state.phrase_index == final_index


@pytest.mark.asyncio
async def test_ticker_released_on_analysis_failure(controller, generate, analyze, image):
    controller.submit("Q")
    await settle()
    generate.resolve(image)
    await settle()
    assert len(_other_tasks()) == 2  # pipeline and ticker

    analyze.fail(AnalysisError("bad payload"))
    await controller.join()

    assert _other_tasks() == set()
    assert controller.state.error == "bad payload"
