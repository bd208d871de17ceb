import io
import json
import time

import pytest
from botocore.exceptions import ClientError, WaiterError

from aws_checks.checks.base_check import CheckStatus, classify
from aws_checks.checks.cloudformation_check import (
    StackStatusCheck,
    classify_stack_status,
)
from aws_checks.checks.cloudfront_check import InvalidateCdnCheck
from aws_checks.checks.elb_check import TargetHealthCheck, classify_target_health
from aws_checks.checks.lambda_check import InvokeFunctionCheck
from aws_checks.checks.logs_check import TailLogsCheck


def test_classify():
    assert classify("running", {"running"}, {"pending"}) is CheckStatus.OK
    assert classify("pending", {"running"}, {"pending"}) is CheckStatus.IN_PROGRESS
    assert classify("stopped", {"running"}, {"pending"}) is CheckStatus.UNHEALTHY
    assert classify(None, {"running"}) is CheckStatus.UNHEALTHY
    assert classify("", {""}) is CheckStatus.UNHEALTHY


class TestStackStatus:
    @pytest.mark.parametrize(
        "stack_status, expected",
        [
            ("CREATE_COMPLETE", CheckStatus.OK),
            ("UPDATE_COMPLETE", CheckStatus.OK),
            ("UPDATE_IN_PROGRESS", CheckStatus.IN_PROGRESS),
            ("UPDATE_COMPLETE_CLEANUP_IN_PROGRESS", CheckStatus.IN_PROGRESS),
            ("ROLLBACK_COMPLETE", CheckStatus.UNHEALTHY),
            ("UPDATE_ROLLBACK_COMPLETE", CheckStatus.UNHEALTHY),
            ("CREATE_FAILED", CheckStatus.UNHEALTHY),
            ("DELETE_COMPLETE", CheckStatus.UNHEALTHY),
        ],
    )
    def test_classify_stack_status(self, stack_status, expected):
        assert classify_stack_status(stack_status) is expected

    def test_reports_status_and_reason(self, session, client, parse):
        client.describe_stacks.return_value = {
            "Stacks": [
                {
                    "StackName": "api",
                    "StackStatus": "UPDATE_ROLLBACK_COMPLETE",
                    "StackStatusReason": "Resource creation cancelled",
                }
            ]
        }
        result = StackStatusCheck(session).run(parse("stack-status", "api"))

        assert result.status is CheckStatus.UNHEALTHY
        assert result.data == "UPDATE_ROLLBACK_COMPLETE"
        assert "Resource creation cancelled" in result.message

    def test_missing_stack(self, session, client, parse):
        client.describe_stacks.side_effect = ClientError(
            {
                "Error": {
                    "Code": "ValidationError",
                    "Message": "Stack with id api does not exist",
                }
            },
            "DescribeStacks",
        )
        result = StackStatusCheck(session).run(parse("stack-status", "api"))
        assert result.status is CheckStatus.UNHEALTHY
        assert "does not exist" in result.message

    def test_other_errors_propagate(self, session, client, parse):
        client.describe_stacks.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "denied"}}, "DescribeStacks"
        )
        with pytest.raises(ClientError):
            StackStatusCheck(session).run(parse("stack-status", "api"))


class TestTargetHealth:
    @pytest.mark.parametrize(
        "states, expected",
        [
            (["healthy", "healthy"], CheckStatus.OK),
            (["healthy", "initial"], CheckStatus.IN_PROGRESS),
            (["draining"], CheckStatus.IN_PROGRESS),
            (["initial", "unhealthy"], CheckStatus.UNHEALTHY),
            (["unused"], CheckStatus.UNHEALTHY),
            ([], CheckStatus.UNHEALTHY),
        ],
    )
    def test_classify_target_health(self, states, expected):
        assert classify_target_health(states) is expected

    def test_lists_targets(self, session, client, parse):
        client.describe_target_health.return_value = {
            "TargetHealthDescriptions": [
                {"Target": {"Id": "i-1", "Port": 80}, "TargetHealth": {"State": "healthy"}},
                {
                    "Target": {"Id": "i-2", "Port": 80},
                    "TargetHealth": {
                        "State": "unhealthy",
                        "Reason": "Target.FailedHealthChecks",
                    },
                },
            ]
        }
        arn = "arn:aws:elasticloadbalancing:us-east-1:123456789012:targetgroup/web/abc"
        result = TargetHealthCheck(session).run(parse("target-health", arn))

        assert result.status is CheckStatus.UNHEALTHY
        assert result.message == "1/2 target(s) healthy"
        assert result.data == [
            "i-1:80\thealthy",
            "i-2:80\tunhealthy\tTarget.FailedHealthChecks",
        ]

    def test_no_targets(self, session, client, parse):
        client.describe_target_health.return_value = {"TargetHealthDescriptions": []}
        result = TargetHealthCheck(session).run(parse("target-health", "arn"))
        assert result.status is CheckStatus.UNHEALTHY
        assert result.message == "No targets registered"


class TestInvalidateCdn:
    RESPONSE = {"Invalidation": {"Id": "I2J0", "Status": "InProgress"}}

    def test_creates_invalidation(self, session, client, parse):
        client.create_invalidation.return_value = self.RESPONSE
        args = parse("invalidate-cdn", "E123", "/index.html", "/css/*")
        result = InvalidateCdnCheck(session).run(args)

        assert result.ok
        assert result.data == "I2J0"
        batch = client.create_invalidation.call_args.kwargs["InvalidationBatch"]
        assert batch["Paths"] == {"Quantity": 2, "Items": ["/index.html", "/css/*"]}
        assert batch["CallerReference"]
        client.get_waiter.assert_not_called()

    def test_default_path(self, session, client, parse):
        client.create_invalidation.return_value = self.RESPONSE
        InvalidateCdnCheck(session).run(parse("invalidate-cdn", "E123"))
        batch = client.create_invalidation.call_args.kwargs["InvalidationBatch"]
        assert batch["Paths"]["Items"] == ["/*"]

    def test_wait(self, session, client, parse):
        client.create_invalidation.return_value = self.RESPONSE
        result = InvalidateCdnCheck(session).run(
            parse("invalidate-cdn", "E123", "--wait")
        )
        assert result.ok
        client.get_waiter.assert_called_once_with("invalidation_completed")

    def test_wait_timeout(self, session, client, parse):
        client.create_invalidation.return_value = self.RESPONSE
        client.get_waiter.return_value.wait.side_effect = WaiterError(
            name="InvalidationCompleted",
            reason="Max attempts exceeded",
            last_response={},
        )
        result = InvalidateCdnCheck(session).run(
            parse("invalidate-cdn", "E123", "--wait")
        )
        assert result.status is CheckStatus.IN_PROGRESS

    def test_wait_failure_is_unhealthy(self, session, client, parse):
        client.create_invalidation.return_value = self.RESPONSE
        client.get_waiter.return_value.wait.side_effect = WaiterError(
            name="InvalidationCompleted",
            reason="Waiter encountered a terminal failure state",
            last_response={},
        )
        result = InvalidateCdnCheck(session).run(
            parse("invalidate-cdn", "E123", "--wait")
        )
        assert result.status is CheckStatus.UNHEALTHY
        assert result.data == "I2J0"


class TestInvokeFunction:
    def test_success(self, session, client, parse):
        client.invoke.return_value = {
            "StatusCode": 200,
            "Payload": io.BytesIO(b'{"ok": true}'),
        }
        args = parse("invoke-function", "worker", "--payload", '{"job": 1}')
        result = InvokeFunctionCheck(session).run(args)

        assert result.ok
        assert json.loads(result.data) == {"ok": True}
        client.invoke.assert_called_once_with(
            FunctionName="worker",
            InvocationType="RequestResponse",
            Payload=b'{"job": 1}',
        )

    def test_function_error(self, session, client, parse):
        client.invoke.return_value = {
            "StatusCode": 200,
            "FunctionError": "Unhandled",
            "Payload": io.BytesIO(b'{"errorMessage": "boom"}'),
        }
        result = InvokeFunctionCheck(session).run(parse("invoke-function", "worker"))
        assert result.status is CheckStatus.UNHEALTHY
        assert "Unhandled" in result.message

    def test_async_with_outfile(self, session, client, parse, tmp_path):
        client.invoke.return_value = {"StatusCode": 202, "Payload": io.BytesIO(b"")}
        outfile = tmp_path / "out.json"
        args = parse("invoke-function", "worker", "--async", "--outfile", str(outfile))
        result = InvokeFunctionCheck(session).run(args)

        assert result.ok
        assert result.data is None
        assert outfile.read_text() == ""
        assert client.invoke.call_args.kwargs["InvocationType"] == "Event"

    def test_invalid_payload(self, session, client, parse):
        args = parse("invoke-function", "worker", "--payload", "{not json")
        result = InvokeFunctionCheck(session).run(args)
        assert result.status is CheckStatus.UNHEALTHY
        client.invoke.assert_not_called()


class TestTailLogs:
    NOW_MS = int(time.time() * 1000)
    EVENTS = [
        {"eventId": "2", "timestamp": NOW_MS - 1000, "logStreamName": "s", "message": "second\n"},
        {"eventId": "1", "timestamp": NOW_MS - 2000, "logStreamName": "s", "message": "first"},
    ]

    def test_prints_events_in_order(self, session, client, paginate, parse):
        paginate({"events": self.EVENTS})
        lines = []
        check = TailLogsCheck(session, emit=lines.append)
        result = check.run(parse("tail-logs", "/aws/lambda/worker", "--filter-pattern", "ERROR"))

        assert result.ok
        assert result.message == "2 event(s) from /aws/lambda/worker"
        assert lines[0].endswith("s first")
        assert lines[1].endswith("s second")
        params = client.get_paginator.return_value.paginate.call_args.kwargs
        assert params["filterPattern"] == "ERROR"
        assert params["logGroupName"] == "/aws/lambda/worker"

    def test_follow_skips_seen_events(self, session, client, parse):
        client.get_paginator.return_value.paginate.side_effect = [
            [{"events": self.EVENTS[1:]}],
            [{"events": self.EVENTS}],
        ]
        lines = []
        sleeps = []

        def sleep(seconds):
            sleeps.append(seconds)
            if len(sleeps) == 2:
                raise KeyboardInterrupt

        check = TailLogsCheck(session, emit=lines.append, sleep=sleep)
        result = check.run(
            parse("tail-logs", "group", "--follow", "--interval", "1")
        )

        assert result.ok
        assert len(lines) == 2
        assert sleeps == [1, 1]
        second_start = client.get_paginator.return_value.paginate.call_args_list[1]
        assert second_start.kwargs["startTime"] == self.NOW_MS - 2000

    def test_interrupt_during_fetch(self, session, client, parse):
        client.get_paginator.return_value.paginate.side_effect = [
            [{"events": self.EVENTS}],
            KeyboardInterrupt,
        ]
        lines = []
        check = TailLogsCheck(session, emit=lines.append, sleep=lambda seconds: None)
        result = check.run(parse("tail-logs", "group", "--follow"))

        assert result.ok
        assert result.message == "2 event(s) from group"
        assert len(lines) == 2

    def test_follow_keeps_dedup_at_latest_timestamp(self, session, client, parse):
        latest = {
            "eventId": "3",
            "timestamp": self.NOW_MS - 1000,
            "logStreamName": "s",
            "message": "same millisecond",
        }
        client.get_paginator.return_value.paginate.side_effect = [
            [{"events": self.EVENTS}],
            [{"events": [self.EVENTS[0], latest]}],
            KeyboardInterrupt,
        ]
        lines = []
        check = TailLogsCheck(session, emit=lines.append, sleep=lambda seconds: None)
        result = check.run(parse("tail-logs", "group", "--follow"))

        assert result.ok
        assert len(lines) == 3
        assert lines[-1].endswith("s same millisecond")
