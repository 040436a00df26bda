from __future__ import annotations

import asyncio
import dataclasses
import json
import logging

import pytest

from conftest import FakeClock, FakeGenerator, FakeSourceControl

from ticket_healing.ci_checker import CIReconciler
from ticket_healing.errors import BillingError, GenerationError
from ticket_healing.models import CheckRun, CIStatus, Ticket
from ticket_healing.pipeline import (
    STATUS_AI_GENERATED,
    STATUS_BLOCKED,
    STATUS_PR_CREATED,
    STATUS_VALIDATION_FAILED,
    TicketPipeline,
)
from ticket_healing.validation import validate_generated_code

TICKET = Ticket(id="10001", key="BUG-1", summary="Null pointer in parser", description="TypeError: cannot read x")


def offline_validator(file_changes, project_root=None):
    return validate_generated_code(file_changes, project_root, which=lambda name, path=None: None)


def _pipeline(settings, source, generator, **kwargs) -> TicketPipeline:
    kwargs.setdefault("validator", offline_validator)
    return TicketPipeline(settings=settings, source_control=source, generator=generator, **kwargs)


def test_end_to_end_with_empty_repository(settings, caplog: pytest.LogCaptureFixture) -> None:
    source = FakeSourceControl(files={})
    generator = FakeGenerator("File: lib/fix.ts\nexport const fixed = true;")

    with caplog.at_level(logging.INFO, logger="audit"):
        result = asyncio.run(_pipeline(settings, source, generator).run(TICKET))

    prompt = generator.prompts[0]
    assert prompt
    assert "BUG-1" in prompt
    assert "Error Type: TypeError" in prompt
    assert result.has_error_info
    assert result.status == STATUS_PR_CREATED
    assert result.files == ["lib/fix.ts"]
    assert source.commits[0]["path"] == "lib/fix.ts"
    assert source.commits[0]["content"] == "export const fixed = true;"
    assert result.pr_number == 1

    events = [json.loads(r.getMessage()) for r in caplog.records if r.name == "audit"]
    assert [e["eventType"] for e in events] == [
        "jira_ticket_received",
        "code_context_fetched",
        "prompt_sent_to_ai",
        "ai_output_received",
        "github_branch_created",
        "commit_created",
        "pull_request_created",
    ]
    prompt_event = events[2]["metadata"]
    assert prompt_event["promptLength"] == len(prompt)
    assert "BUG-1" not in json.dumps(prompt_event)


def test_guard_rejection_stops_before_any_mutation(settings) -> None:
    source = FakeSourceControl()
    generator = FakeGenerator("File: .github/workflows/ci.ts\nexport const x = 1;")

    result = asyncio.run(_pipeline(settings, source, generator).run(TICKET))

    assert result.status == STATUS_BLOCKED
    assert result.reason == "Contains files in blocked paths"
    assert result.blocked_files == [".github/workflows/ci.ts"]
    assert source.commits == []
    assert not any(call.startswith("create_branch") for call in source.calls)


def test_too_many_files_are_blocked(settings) -> None:
    output = "\n".join(f"File: src/f{i}.ts\nexport const v{i} = {i};" for i in range(4))
    source = FakeSourceControl()

    result = asyncio.run(_pipeline(settings, source, FakeGenerator(output)).run(TICKET))

    assert result.status == STATUS_BLOCKED
    assert len(result.blocked_files) == 4


def test_validation_errors_block_submission(settings) -> None:
    source = FakeSourceControl()
    generator = FakeGenerator("File: lib/fix.ts\nexport function f() {")

    result = asyncio.run(_pipeline(settings, source, generator).run(TICKET))

    assert result.status == STATUS_VALIDATION_FAILED
    assert result.validation_errors == ["lib/fix.ts: Unmatched braces"]
    assert source.commits == []


def test_validator_crash_is_advisory(settings) -> None:
    def broken_validator(file_changes, project_root=None):
        raise OSError("no temp dir")

    source = FakeSourceControl()
    generator = FakeGenerator("File: lib/fix.ts\nexport const ok = 1;")

    result = asyncio.run(_pipeline(settings, source, generator, validator=broken_validator).run(TICKET))

    assert result.status == STATUS_PR_CREATED


def test_submission_failure_keeps_generated_fix(settings) -> None:
    source = FakeSourceControl()
    source.fail_put = True
    generator = FakeGenerator("File: lib/fix.ts\nexport const ok = 1;")

    result = asyncio.run(_pipeline(settings, source, generator).run(TICKET))

    assert result.status == STATUS_AI_GENERATED
    assert result.files == ["lib/fix.ts"]
    assert "commit" in result.submission_error
    assert result.pr_url is None


def test_empty_output_reports_submission_error(settings) -> None:
    result = asyncio.run(_pipeline(settings, FakeSourceControl(), FakeGenerator("")).run(TICKET))

    assert result.status == STATUS_AI_GENERATED
    assert result.submission_error == "No valid file changes found in AI output"


@pytest.mark.parametrize("error", [GenerationError("boom"), BillingError("quota")])
def test_generation_failure_propagates_without_mutation(settings, error) -> None:
    source = FakeSourceControl()

    with pytest.raises(GenerationError):
        asyncio.run(_pipeline(settings, source, FakeGenerator(error=error)).run(TICKET))

    assert source.commits == []
    assert source.pull_requests == []


def test_ci_reconciliation_runs_when_enabled(settings, clock: FakeClock) -> None:
    settings = dataclasses.replace(settings, wait_for_ci=True)
    source = FakeSourceControl()
    source.check_run_snapshots = [[CheckRun("build", "in_progress")], [CheckRun("build", "completed", "success")]]
    reconciler = CIReconciler(source, max_wait=300, poll_interval=10, clock=clock, sleep=clock.sleep)
    generator = FakeGenerator("File: lib/fix.ts\nexport const ok = 1;")

    result = asyncio.run(_pipeline(settings, source, generator, reconciler=reconciler).run(TICKET))

    assert result.status == STATUS_PR_CREATED
    assert result.ci_status == CIStatus.SUCCESS
    assert source.draft_updates == [(1, False)]
    assert result.to_dict()["ci_status"] == "success"


def test_ci_timeout_is_not_a_failure(settings, clock: FakeClock) -> None:
    settings = dataclasses.replace(settings, wait_for_ci=True)
    source = FakeSourceControl()
    reconciler = CIReconciler(source, max_wait=30, poll_interval=10, clock=clock, sleep=clock.sleep)
    generator = FakeGenerator("File: lib/fix.ts\nexport const ok = 1;")

    result = asyncio.run(_pipeline(settings, source, generator, reconciler=reconciler).run(TICKET))

    assert result.status == STATUS_PR_CREATED
    assert result.ci_status == CIStatus.PENDING
    assert result.ci_conclusion == "timeout"


def test_doc_comment_mentioning_file_is_committed_whole(settings) -> None:
    code = "/**\n * File: parser helpers\n */\nexport function parse(input: string) {\n  return input;\n}"
    source = FakeSourceControl()
    generator = FakeGenerator(f"File: lib/parser.ts\n{code}")

    result = asyncio.run(_pipeline(settings, source, generator).run(TICKET))

    assert result.status == STATUS_PR_CREATED
    assert result.files == ["lib/parser.ts"]
    assert [c["content"] for c in source.commits] == [code]
