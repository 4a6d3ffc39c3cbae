import threading

import pytest

from conftest import read_log
from gexpin_node.errors import (
    InputError,
    MethodNotAllowedError,
    PersistenceError,
    ResolutionError,
    StorageError,
)
from gexpin_node.orchestrator import PinOrchestrator


def _run(orch, ghurl):
    job = orch.prepare("POST", ghurl)
    run = orch.start(job)
    body = "".join(run)
    assert run.wait(5)
    return run, body


def test_prepare_resolves(service, github):
    github.publish("acme/widget", "1.2.3 QmAbc123")
    job = PinOrchestrator(service).prepare("POST", "https://github.com/acme/widget")
    assert (job.path, job.version, job.cid) == ("acme/widget", "1.2.3", "QmAbc123")


def test_prepare_rejects(service, github):
    orch = PinOrchestrator(service)
    with pytest.raises(MethodNotAllowedError):
        orch.prepare("GET", "github.com/acme/widget")
    with pytest.raises(InputError):
        orch.prepare("POST", "bitbucket.org/acme/widget")
    with pytest.raises(ResolutionError):
        orch.prepare("POST", "github.com/acme/unpublished")


def test_successful_run(service, github, ipfs):
    github.publish("acme/widget", "1.2.3 QmAbc123")
    ipfs.refs_by_cid["QmAbc123"] = ["QmAbc123", "QmDef456"]

    run, body = _run(PinOrchestrator(service), "github.com/acme/widget")
    assert run.ok
    assert body.startswith("<!DOCTYPE html>\n")
    assert read_log(service) == ["acme/widget QmAbc123 1.2.3"]


@pytest.mark.parametrize(
    "breakage, error_cls",
    [
        ("refs", StorageError),
        ("pin", StorageError),
        ("log", PersistenceError),
    ],
)
def test_failed_run_reports_error_class(service, github, ipfs, breakage, error_cls):
    github.publish("acme/widget", "1.2.3 QmAbc123")
    if breakage == "refs":
        ipfs.refs_fail_at = 0
    elif breakage == "pin":
        ipfs.pin_error = "boom"
    else:
        service.pinlog.close()

    run, body = _run(PinOrchestrator(service), "github.com/acme/widget")
    assert not run.ok
    assert isinstance(run.error, error_cls)
    assert run.error.status_code == 500
    assert "<p>error:" in body
    assert len(service.recent) == 0


def test_html_in_refs_is_escaped(service, github, ipfs):
    github.publish("acme/widget", "1.2.3 QmAbc123")
    ipfs.refs_by_cid["QmAbc123"] = ["<script>x</script>"]
    _, body = _run(PinOrchestrator(service), "github.com/acme/widget")
    assert "<script>" not in body
    assert "&lt;script&gt;" in body


def test_run_finishes_without_a_reader(service, github, ipfs):
    # nobody drains the stream (client went away); the pin still commits
    github.publish("acme/widget", "1.2.3 QmAbc123")
    orch = PinOrchestrator(service)
    run = orch.start(orch.prepare("POST", "github.com/acme/widget"))
    assert run.wait(5)
    assert run.ok
    assert ipfs.pinned == ["QmAbc123"]
    assert read_log(service) == ["acme/widget QmAbc123 1.2.3"]


def _pin_many(service, ghurls):
    orch = PinOrchestrator(service)
    runs = []
    lock = threading.Lock()

    def worker(u):
        run, _ = _run(orch, u)
        with lock:
            runs.append(run)

    threads = [threading.Thread(target=worker, args=(u,)) for u in ghurls]
    for t in threads:
        t.start()
    for t in threads:
        t.join(10)
    return runs


def test_concurrent_distinct_sources(service, github):
    n = 25
    for i in range(n):
        github.publish(f"acme/pkg{i}", f"1.0.{i} QmHash{i}")

    runs = _pin_many(service, [f"github.com/acme/pkg{i}" for i in range(n)])
    assert len(runs) == n
    assert all(r.ok for r in runs)

    assert len(service.recent) == n
    lines = read_log(service)
    assert sorted(lines) == sorted(f"acme/pkg{i} QmHash{i} 1.0.{i}" for i in range(n))


def test_concurrent_same_source(service, github):
    github.publish("acme/widget", "1.2.3 QmAbc123")
    runs = _pin_many(service, ["github.com/acme/widget"] * 20)
    assert all(r.ok for r in runs)

    lines = read_log(service)
    assert len(lines) == 20
    assert set(lines) == {"acme/widget QmAbc123 1.2.3"}
    assert len(service.recent) == 1


def test_progress_streams_before_refs_finish(service, github, ipfs):
    github.publish("acme/widget", "1.2.3 QmAbc123")
    ipfs.refs_by_cid["QmAbc123"] = ["QmAbc123", "QmDef456"]
    gate = threading.Event()
    ipfs.refs_gate = gate

    orch = PinOrchestrator(service)
    run = orch.start(orch.prepare("POST", "github.com/acme/widget"))
    chunks = iter(run)

    seen = []
    while "<li>QmAbc123</li>" not in seen:
        seen.append(next(chunks))

    # refs are still blocked on the node
    assert seen[0] == "<!DOCTYPE html>\n"
    assert "pinning github.com/acme/widget version 1.2.3: QmAbc123" in seen[1]
    assert "<li>QmDef456</li>" not in seen
    assert not run.wait(0.05)
    assert ipfs.pinned == []
    assert read_log(service) == []

    gate.set()
    rest = "".join(chunks)
    assert rest.index("<li>QmDef456</li>") < rest.index("<p>success!</p>")
    assert run.wait(5)
    assert run.ok
    assert read_log(service) == ["acme/widget QmAbc123 1.2.3"]
