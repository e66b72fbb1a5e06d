import json

from subgateway.graphql import error_response, error_response_body


class _TestError(Exception):
    def __init__(self, cause: str) -> None:
        super().__init__(f"test error: {cause}")
        self.cause = cause


def test_create_graphql_error_response():
    error = _TestError("test message")

    response = error_response(error)

    assert response.status == 200
    assert response.header("Content-Type") == "application/json"
    body = response.json()
    assert body.get("data") is None
    assert len(body["errors"]) == 1
    assert body["errors"][0]["message"] == "test error: test message"


def test_error_response_body_round_trips_message():
    message = 'quoted "text" and \n newline'
    body = json.loads(error_response_body(message))
    assert body["errors"] == [{"message": message}]


def test_error_response_body_matches_response_body():
    error = _TestError("x")
    assert error_response(error).body == error_response_body(error)