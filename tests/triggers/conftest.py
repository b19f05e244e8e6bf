"""
Trigger test fixtures: func.HttpRequest builder and response decoding.
"""

import json

import azure.functions as func
import pytest


def build_request(method="GET", url="/api/test", params=None, body=None, headers=None):
    if isinstance(body, dict):
        body = json.dumps(body).encode("utf-8")
        headers = {"content-type": "application/json", **(headers or {})}
    return func.HttpRequest(
        method=method,
        url=f"https://bridge-func.azurewebsites.net{url}",
        headers=headers or {},
        params=params or {},
        body=body or b"",
    )


@pytest.fixture
def make_request():
    return build_request


@pytest.fixture
def json_body():
    def decode(response: func.HttpResponse):
        return json.loads(response.get_body())
    return decode
