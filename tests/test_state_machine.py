from __future__ import annotations

import pytest

from mangamorph.errors import CredentialError, RefusalError
from mangamorph.image.source import SourceImage
from mangamorph.transform.interfaces import TransformedImage
from mangamorph.workflow.state import DEFAULT_ERROR_MESSAGE, AppState, WorkflowStateMachine


@pytest.fixture()
def machine() -> WorkflowStateMachine:
    return WorkflowStateMachine()


@pytest.fixture()
def image() -> SourceImage:
    return SourceImage(data=b"photo", mime_type="image/jpeg", name="photo.jpg")


def test_starts_idle_and_empty(machine: WorkflowStateMachine) -> None:
    snap = machine.snapshot()
    assert snap.state is AppState.IDLE
    assert snap.current_image is None
    assert snap.result_image is None
    assert snap.error_message == ""


def test_start_without_image_is_a_no_op(machine: WorkflowStateMachine) -> None:
    assert machine.start_transform() is None
    assert machine.state is AppState.IDLE


def test_happy_path(machine: WorkflowStateMachine, image: SourceImage) -> None:
    machine.select_file(image)
    token = machine.start_transform()
    assert token is not None
    assert machine.state is AppState.PROCESSING

    assert machine.complete_success(token, TransformedImage(b"png"))
    snap = machine.snapshot()
    assert snap.state is AppState.SUCCESS
    assert snap.result_image == TransformedImage(b"png")
    assert snap.error_message == ""


def test_second_start_while_processing_is_refused(machine: WorkflowStateMachine, image: SourceImage) -> None:
    machine.select_file(image)
    first = machine.start_transform()

    assert machine.start_transform() is None
    assert machine.current_attempt == first


def test_failure_stores_message_and_allows_retry(machine: WorkflowStateMachine, image: SourceImage) -> None:
    machine.select_file(image)
    token = machine.start_transform()
    assert machine.complete_failure(token, RefusalError("unsafe content"))

    snap = machine.snapshot()
    assert snap.state is AppState.ERROR
    assert snap.error_message == "unsafe content"
    assert snap.result_image is None

    retry = machine.start_transform()
    assert retry is not None and retry != token
    assert machine.snapshot().error_message == ""
    assert machine.snapshot().current_image is image


def test_blank_error_gets_default_message(machine: WorkflowStateMachine, image: SourceImage) -> None:
    machine.select_file(image)
    token = machine.start_transform()
    machine.complete_failure(token, RuntimeError(""))

    assert machine.snapshot().error_message == DEFAULT_ERROR_MESSAGE


def test_credential_errors_are_flagged(machine: WorkflowStateMachine, image: SourceImage) -> None:
    machine.select_file(image)
    token = machine.start_transform()
    machine.complete_failure(token, CredentialError())

    assert machine.snapshot().needs_credentials


def test_regenerate_clears_previous_result(machine: WorkflowStateMachine, image: SourceImage) -> None:
    machine.select_file(image)
    machine.complete_success(machine.start_transform(), TransformedImage(b"old"))

    machine.start_transform()

    snap = machine.snapshot()
    assert snap.state is AppState.PROCESSING
    assert snap.result_image is None


def test_selecting_new_file_in_success_clears_result(machine: WorkflowStateMachine, image: SourceImage) -> None:
    machine.select_file(image)
    machine.complete_success(machine.start_transform(), TransformedImage(b"old"))

    other = SourceImage(data=b"other", mime_type="image/png")
    machine.select_file(other)

    snap = machine.snapshot()
    assert snap.state is AppState.IDLE
    assert snap.result_image is None
    assert snap.current_image is other


def test_completion_after_reset_is_discarded(machine: WorkflowStateMachine, image: SourceImage) -> None:
    machine.select_file(image)
    token = machine.start_transform()
    machine.reset()

    assert not machine.complete_success(token, TransformedImage(b"late"))
    snap = machine.snapshot()
    assert snap.state is AppState.IDLE
    assert snap.current_image is None
    assert snap.result_image is None


def test_completion_for_superseded_attempt_is_discarded(machine: WorkflowStateMachine, image: SourceImage) -> None:
    machine.select_file(image)
    stale = machine.start_transform()
    machine.select_file(image)
    current = machine.start_transform()

    assert not machine.complete_failure(stale, RuntimeError("late failure"))
    assert machine.state is AppState.PROCESSING
    assert machine.complete_success(current, TransformedImage(b"png"))
    assert machine.state is AppState.SUCCESS


def test_completions_outside_processing_are_ignored(machine: WorkflowStateMachine, image: SourceImage) -> None:
    machine.select_file(image)
    token = machine.start_transform()
    machine.complete_success(token, TransformedImage(b"png"))

    assert not machine.complete_failure(token, RuntimeError("again"))
    assert machine.state is AppState.SUCCESS
