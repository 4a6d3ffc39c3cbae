import threading

import pytest
import requests
from fastapi.testclient import TestClient

from gexpin_node.app import create_app
from gexpin_node.config import load_config
from gexpin_node.errors import NodeUnavailableError, StorageError
from gexpin_node.resolver import DEFAULT_LASTPUBVER_URL, VersionResolver
from gexpin_node.service import GatewayService

EXTERNAL_IP = "203.0.113.7"


class FakeResponse:
    def __init__(self, text="", status_code=200):
        self.text = text
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error")


class FakeGitHub:
    """Stands in for the requests.Session the resolver uses."""

    def __init__(self):
        self.bodies = {}
        self.requested = []

    def publish(self, path, body):
        self.bodies[DEFAULT_LASTPUBVER_URL.format(path=path)] = body

    def get(self, url, timeout=None):
        self.requested.append(url)
        if url not in self.bodies:
            return FakeResponse("404: Not Found", status_code=404)
        return FakeResponse(self.bodies[url])


class FakeIPFS:
    def __init__(self):
        self.up = True
        self.peer = "QmPeerID"
        self.id_error = None
        self.refs_by_cid = {}
        self.refs_fail_at = None
        self.refs_gate = None
        self.pin_error = None
        self.pinned = []
        self._lock = threading.Lock()

    def is_up(self):
        return self.up

    def peer_id(self):
        if self.id_error:
            raise NodeUnavailableError(self.id_error)
        return self.peer

    def refs(self, cid, recursive=True):
        for i, ref in enumerate(self.refs_by_cid.get(cid, [cid])):
            if i > 0 and self.refs_gate is not None:
                self.refs_gate.wait(5)
            if self.refs_fail_at is not None and i == self.refs_fail_at:
                raise StorageError("refs blew up")
            yield ref

    def pin(self, cid, recursive=True):
        if self.pin_error:
            raise StorageError(self.pin_error)
        with self._lock:
            self.pinned.append(cid)
        return {"Pins": [cid]}

    def close(self):
        pass


@pytest.fixture
def github():
    return FakeGitHub()


@pytest.fixture
def ipfs():
    return FakeIPFS()


@pytest.fixture
def service(tmp_path, github, ipfs):
    www = tmp_path / "www"
    www.mkdir()
    (www / "index.html").write_text("<h1>gexpin</h1>")

    cfg = load_config(str(tmp_path))
    cfg["pinlog"]["path"] = str(tmp_path / "pinlogs")
    cfg["server"]["static_dir"] = str(www)

    svc = GatewayService(
        cfg,
        ipfs=ipfs,
        resolver=VersionResolver(session=github),
        ip_lookup=lambda: EXTERNAL_IP,
    )
    svc.start()
    yield svc
    svc.close()


@pytest.fixture
def client(service):
    with TestClient(create_app(service)) as c:
        yield c


def read_log(service):
    with open(service.pinlog.path, "r", encoding="utf-8") as f:
        return f.read().splitlines()
