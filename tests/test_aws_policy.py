import pytest

from auth.aws_policy import AuthorizerDenied, render_authorizer_response, token_authorizer
from auth.gateway import AuthorizationGateway
from auth.models import PolicyDecision, UserContext, batch_capability
from conftest import FakeStorage, basic_header, make_settings
from core.lfs_config import ConfigProvider

METHOD_ARN = "arn:aws:execute-api:us-east-1:123456789012:abcdef1234/prod/POST/objects/batch"


def _decision(push=True):
    return PolicyDecision(
        principal_id="alice",
        capabilities=[batch_capability("alice")],
        context=UserContext(username="alice", push=push, pull=True),
    )


def test_renders_invoke_policy_for_batch_endpoint():
    out = render_authorizer_response(_decision(), METHOD_ARN)

    assert out["principalId"] == "alice"
    statement = out["policyDocument"]["Statement"][0]
    assert out["policyDocument"]["Version"] == "2012-10-17"
    assert statement["Action"] == "execute-api:Invoke"
    assert statement["Effect"] == "Allow"
    assert statement["Resource"] == [
        "arn:aws:execute-api:us-east-1:123456789012:abcdef1234/prod/POST/objects/batch"
    ]
    assert out["context"] == {"username": "alice", "push": True, "pull": True}


@pytest.mark.parametrize(
    "arn",
    ["", "not-an-arn", "arn:aws:lambda:us-east-1:123:function/x", "arn:aws:execute-api:us-east-1:123:abc"],
)
def test_malformed_method_arn_is_rejected(arn):
    with pytest.raises(ValueError):
        render_authorizer_response(_decision(), arn)


def _gateway(identity):
    return AuthorizationGateway(identity, ConfigProvider.from_settings(make_settings().lfs_config, FakeStorage()))


@pytest.mark.asyncio
async def test_token_authorizer_allows_valid_credential(identity):
    event = {
        "type": "TOKEN",
        "authorizationToken": basic_header("bob", "tok-reader"),
        "methodArn": METHOD_ARN,
    }

    out = await token_authorizer(event, _gateway(identity))
    assert out["principalId"] == "bob"
    assert out["context"]["push"] is False


@pytest.mark.asyncio
async def test_token_authorizer_denies_bad_credential(identity):
    event = {"type": "TOKEN", "authorizationToken": "Basic Zm9v", "methodArn": METHOD_ARN}

    with pytest.raises(AuthorizerDenied, match="Unauthorized"):
        await token_authorizer(event, _gateway(identity))


@pytest.mark.asyncio
async def test_token_authorizer_denies_on_bad_arn(identity):
    event = {"type": "TOKEN", "authorizationToken": basic_header("bob", "tok-reader"), "methodArn": "junk"}

    with pytest.raises(AuthorizerDenied):
        await token_authorizer(event, _gateway(identity))


@pytest.mark.asyncio
async def test_token_authorizer_denies_non_ascii_credential(identity):
    event = {"type": "TOKEN", "authorizationToken": "Basic éééé", "methodArn": METHOD_ARN}

    with pytest.raises(AuthorizerDenied, match="Unauthorized"):
        await token_authorizer(event, _gateway(identity))
