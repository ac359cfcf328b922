import pytest
from deploy_scale.args import resolve_scaling_intent
from deploy_scale.errors import NotFoundError, RemoteError, ValidationError, VerificationTimeoutError
from deploy_scale.orchestrator import ScaleOrchestrator
from deploy_scale.output import Output
from deploy_scale.verify import ScaleVerifier
from tests.fixtures.scale_fixtures import (
    TEST_DEPLOYMENT_ID,
    TEST_DEPLOYMENT_URL,
    StubClient,
    make_deployment,
)


@pytest.fixture
def intent():
    return resolve_scaling_intent([TEST_DEPLOYMENT_URL, "sfo,iad", "1", "5"])


def test_run_submits_full_payload_once(stub_client, intent):
    result = ScaleOrchestrator(stub_client, Output()).run(TEST_DEPLOYMENT_URL, intent)

    assert stub_client.lookup_calls == [TEST_DEPLOYMENT_URL]
    assert stub_client.update_calls == [
        (TEST_DEPLOYMENT_ID, {"sfo": {"min": 1, "max": 5}, "iad": {"min": 1, "max": 5}})
    ]
    assert result.deployment.id == TEST_DEPLOYMENT_ID
    assert result.lookup_ms >= 0
    assert result.update_ms >= 0
    assert result.verify_ms is None


def test_run_reports_lookup_and_update(stub_client, intent, capsys):
    ScaleOrchestrator(stub_client, Output()).run(TEST_DEPLOYMENT_URL, intent)

    out = capsys.readouterr().out
    assert f'Fetched deployment "{TEST_DEPLOYMENT_URL}"' in out
    assert "Deployment scale settings updated" in out


@pytest.mark.parametrize("deployment, message", [
    (make_deployment(type="STATIC"), "static deployments"),
    (make_deployment(state="ERROR"), "ERROR state"),
])
def test_ineligible_deployment_never_updates(deployment, message, intent):
    client = StubClient(deployment=deployment)

    with pytest.raises(ValidationError) as exc_info:
        ScaleOrchestrator(client, Output()).run(TEST_DEPLOYMENT_URL, intent)

    assert message in str(exc_info.value)
    assert len(client.lookup_calls) == 1
    assert len(client.update_calls) == 0


def test_not_found_is_reported_with_identifier(not_found_client, intent):
    with pytest.raises(NotFoundError) as exc_info:
        ScaleOrchestrator(not_found_client, Output()).run("missing.example", intent)

    assert 'Failed to find deployment "missing.example"' in str(exc_info.value)
    assert not_found_client.update_calls == []


def test_other_lookup_errors_propagate_unchanged(intent):
    error = RemoteError("Forbidden (403)", status=403)
    client = StubClient(lookup_error=error)

    with pytest.raises(RemoteError) as exc_info:
        ScaleOrchestrator(client, Output()).run(TEST_DEPLOYMENT_URL, intent)

    assert exc_info.value is error
    assert client.update_calls == []


def test_update_errors_propagate_unchanged(failing_update_client, intent):
    with pytest.raises(RemoteError) as exc_info:
        ScaleOrchestrator(failing_update_client, Output()).run(TEST_DEPLOYMENT_URL, intent)

    assert exc_info.value.status == 500
    assert len(failing_update_client.update_calls) == 1


def test_same_intent_twice_sends_two_identical_updates(stub_client, intent):
    orchestrator = ScaleOrchestrator(stub_client, Output())
    orchestrator.run(TEST_DEPLOYMENT_URL, intent)
    orchestrator.run(TEST_DEPLOYMENT_URL, intent)

    assert len(stub_client.update_calls) == 2
    assert stub_client.update_calls[0] == stub_client.update_calls[1]
    assert len(stub_client.lookup_calls) == 2


def test_run_with_verifier_waits_for_counts(intent):
    client = StubClient(instance_counts=[{"sfo": 0, "iad": 0}, {"sfo": 1, "iad": 2}])
    verifier = ScaleVerifier(client, timeout=10, interval=0, sleep=lambda _: None)

    result = ScaleOrchestrator(client, Output(), verifier=verifier).run(TEST_DEPLOYMENT_URL, intent)

    assert result.instance_counts == {"sfo": 1, "iad": 2}
    assert result.verify_ms is not None
    assert client.count_calls == 2


def test_verification_timeout_after_update(intent):
    client = StubClient(instance_counts=[{"sfo": 0, "iad": 0}])
    ticks = iter([0.0, 5.0, 11.0])
    verifier = ScaleVerifier(client, timeout=10, interval=0,
                             clock=lambda: next(ticks), sleep=lambda _: None)

    with pytest.raises(VerificationTimeoutError):
        ScaleOrchestrator(client, Output(), verifier=verifier).run(TEST_DEPLOYMENT_URL, intent)

    assert len(client.update_calls) == 1
