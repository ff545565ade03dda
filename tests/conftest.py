"""Shared fakes for the Supabase client, Gemini and image hosts."""

import base64
import itertools
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient
from postgrest.exceptions import APIError

from tryon_studio.config import Settings, get_settings
from tryon_studio.main import app
from tryon_studio.routers.tryon.dependencies import get_http_client, get_supabase

UNIQUE_KEYS = {"tryon_results": ("user_id", "clothing_id", "user_image_id")}

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image"
GENERATED_BYTES = b"\x89PNG\r\n\x1a\ngenerated"
VIDEO_BYTES = b"\x00\x00\x00\x18ftypmp42fake-video"


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.action = "select"
        self.payload: Any = None
        self.filters: List[tuple] = []
        self.row_limit: Optional[int] = None

    def select(self, columns: str = "*", **_: Any) -> "FakeQuery":
        self.action = "select"
        self.columns = [c.strip() for c in columns.split(",")]
        return self

    def insert(self, record: Dict[str, Any]) -> "FakeQuery":
        self.action = "insert"
        self.payload = record
        return self

    def update(self, values: Dict[str, Any]) -> "FakeQuery":
        self.action = "update"
        self.payload = values
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append((column, value))
        return self

    def limit(self, count: int) -> "FakeQuery":
        self.row_limit = count
        return self

    def _matches(self, row: Dict[str, Any]) -> bool:
        return all(row.get(column) == value for column, value in self.filters)

    def execute(self) -> SimpleNamespace:
        if (self.action, self.table) in self.db.failures:
            raise APIError({"message": f"{self.action} on {self.table} failed", "code": "XX000"})

        rows = self.db.tables.setdefault(self.table, [])

        if self.action == "insert":
            keys = UNIQUE_KEYS.get(self.table)
            if keys and any(
                all(row.get(k) == self.payload.get(k) for k in keys) for row in rows
            ):
                raise APIError(
                    {
                        "message": "duplicate key value violates unique constraint",
                        "code": "23505",
                    }
                )
            row = {"id": next(self.db.ids), **self.payload}
            rows.append(row)
            return SimpleNamespace(data=[dict(row)], count=None)

        if self.action == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(self.payload)
                    updated.append(dict(row))
            return SimpleNamespace(data=updated, count=None)

        found = [dict(row) for row in rows if self._matches(row)]
        if self.row_limit is not None:
            found = found[: self.row_limit]
        return SimpleNamespace(data=found, count=len(found))


class FakeBucket:
    def __init__(self, db: "FakeSupabase", name: str):
        self.db = db
        self.name = name

    def upload(self, path: str, file: bytes, file_options: Optional[dict] = None):
        if ("upload", self.name) in self.db.failures:
            raise RuntimeError("storage upload rejected")
        self.db.objects[(self.name, path)] = {
            "bytes": file,
            "options": dict(file_options or {}),
        }
        return SimpleNamespace(path=path)

    def create_signed_url(self, path: str, expires_in: int) -> Dict[str, str]:
        if ("sign", self.name) in self.db.failures:
            raise RuntimeError("signing rejected")
        self.db.signed.append((self.name, path, expires_in))
        url = f"https://storage.test/object/sign/{self.name}/{path}?token=t&expires_in={expires_in}"
        return {"signedURL": url, "signedUrl": url}

    def download(self, path: str) -> bytes:
        try:
            return self.db.objects[(self.name, path)]["bytes"]
        except KeyError:
            raise RuntimeError(f"Object not found: {path}") from None


class FakeSupabase:
    """In-memory stand-in for the parts of supabase.Client the service uses."""

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.objects: Dict[tuple, Dict[str, Any]] = {}
        self.signed: List[tuple] = []
        self.failures: set = set()
        self.ids = (f"row-{n}" for n in itertools.count(1))
        self.storage = SimpleNamespace(from_=lambda bucket: FakeBucket(self, bucket))

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)


def gemini_image_response(image_bytes: bytes = GENERATED_BYTES) -> Dict[str, Any]:
    return {
        "candidates": [
            {
                "content": {
                    "parts": [
                        {"text": "Here is your image"},
                        {
                            "inlineData": {
                                "mimeType": "image/png",
                                "data": base64.b64encode(image_bytes).decode("utf-8"),
                            }
                        },
                    ]
                }
            }
        ]
    }


class FakeUpstream:
    """Routes httpx requests to canned image, Gemini and video responses."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.images: Dict[str, httpx.Response] = {}
        self.generate_content: Dict[str, Any] = gemini_image_response()
        self.operations: List[Dict[str, Any]] = [
            {"name": "models/veo/operations/op-1", "done": True, "response": video_response()}
        ]
        self.submitted_operation: Dict[str, Any] = {
            "name": "models/veo/operations/op-1",
            "done": False,
        }
        self.video_status = 200

    def add_image(self, url: str, content: bytes = PNG_BYTES, status: int = 200, headers=None):
        self.images[url] = httpx.Response(status, content=content, headers=headers)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        path = request.url.path

        if path.endswith(":generateContent"):
            return httpx.Response(200, json=self.generate_content)
        if path.endswith(":predictLongRunning"):
            return httpx.Response(200, json=self.submitted_operation)
        if "/operations/" in path:
            return httpx.Response(200, json=self.operations.pop(0))
        if request.url.host == "files.test":
            return httpx.Response(self.video_status, content=VIDEO_BYTES)

        base = url.split("?")[0]
        for image_url, response in self.images.items():
            if image_url == url or image_url == base:
                return httpx.Response(
                    response.status_code,
                    content=response.content,
                    headers=response.headers,
                )
        return httpx.Response(404)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


def video_response(uri: str = "https://files.test/v1beta/files/abc:download?alt=media"):
    return {
        "generateVideoResponse": {"generatedSamples": [{"video": {"uri": uri}}]}
    }


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://project.supabase.test",
        supabase_service_key="service-key",
        gemini_api_key="gemini-key",
        video_poll_interval_seconds=0,
        video_poll_max_attempts=5,
    )


@pytest.fixture
def supabase() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def client(settings, supabase, upstream) -> TestClient:
    def override_supabase() -> FakeSupabase:
        return supabase

    async def override_http_client():
        async with upstream.client() as http:
            yield http

    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_supabase] = override_supabase
    app.dependency_overrides[get_http_client] = override_http_client
    yield TestClient(app)
    app.dependency_overrides.clear()
