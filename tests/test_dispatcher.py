"""Tests for the concurrent probe dispatcher"""
import threading
import time
import pytest

from probe.dispatcher import ProbeDispatcher
from probe.models import AddressFamily, ProbeError, ProbeResult, ProbeSettings, ProbeTarget


def v4(host):
    return ProbeTarget(host, AddressFamily.IPV4)


class FakeNetwork:
    """Resolver and prober doubles that record how they were called"""

    def __init__(self, unresolvable=(), no_socket=(), broken=(), round_trips=None, delay=0.0):
        self.unresolvable = set(unresolvable)
        self.no_socket = set(no_socket)
        self.broken = set(broken)
        self.round_trips = round_trips if round_trips is not None else [1.0, 2.0, 3.0]
        self.delay = delay
        self.probed = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def resolve(self, target):
        if target.host in self.unresolvable:
            raise ProbeError(f"lookup {target.host}: no such host")
        return f"addr-{target.host}"

    def probe(self, address, target, settings):
        with self._lock:
            self.probed.append(target.host)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            if target.host in self.no_socket:
                raise ProbeError("icmp socket: operation not permitted")
            if target.host in self.broken:
                raise RuntimeError("boom")
            return list(self.round_trips)
        finally:
            with self._lock:
                self.in_flight -= 1


class TestProbeDispatcher:
    """Worker pool behaviour"""

    def make(self, network, **settings):
        return ProbeDispatcher(ProbeSettings(**settings), resolver=network.resolve, prober=network.probe)

    @pytest.mark.parametrize("concurrency,count", [(1, 1), (1, 5), (3, 7), (10, 4), (4, 4)])
    def test_one_result_per_target(self, concurrency, count):
        network = FakeNetwork()
        targets = [v4(f"host{i}") for i in range(count)]

        results = self.make(network, concurrency=concurrency, count=3).run(targets)

        assert len(results) == count
        assert {r.target for r in results} == set(targets)
        assert all(r.ok for r in results)

    def test_failures_do_not_affect_other_targets(self):
        network = FakeNetwork(unresolvable={"bad1", "bad2"}, no_socket={"nosock"}, broken={"crash"})
        targets = [v4(h) for h in ["good1", "bad1", "nosock", "good2", "crash", "bad2", "good3"]]

        results = {r.target.host: r for r in self.make(network, concurrency=2, count=3).run(targets)}

        assert len(results) == len(targets)
        assert {h for h, r in results.items() if r.ok} == {"good1", "good2", "good3"}
        assert "no such host" in results["bad1"].error
        assert results["nosock"].address == "addr-nosock"
        assert "not permitted" in results["nosock"].error
        assert "boom" in results["crash"].error
        for host in ("good1", "good2", "good3"):
            assert results[host].packet_loss == 0.0
            assert results[host].address == f"addr-{host}"

    def test_unresolved_targets_never_reach_a_probe_worker(self):
        network = FakeNetwork(unresolvable={"bad"})

        self.make(network, concurrency=2).run([v4("bad"), v4("good")])

        assert network.probed == ["good"]

    def test_in_flight_probes_are_bounded(self):
        network = FakeNetwork(delay=0.05)
        targets = [v4(f"host{i}") for i in range(9)]

        results = self.make(network, concurrency=3).run(targets)

        assert len(results) == 9
        assert 1 <= network.max_in_flight <= 3

    def test_worker_count_is_capped_by_targets(self):
        dispatcher = ProbeDispatcher(ProbeSettings(concurrency=10))

        assert dispatcher.worker_count(3) == 3
        assert dispatcher.worker_count(25) == 10
        assert dispatcher.worker_count(0) == 0

    def test_no_targets(self):
        network = FakeNetwork()

        assert self.make(network).run([]) == []
        assert network.probed == []

    def test_unresolvable_targets_fail_concurrently(self):
        """Three slow lookup failures with two workers take two rounds, not three"""
        def slow_failing_resolver(target):
            time.sleep(0.3)
            raise ProbeError(f"lookup {target.host}: timed out")

        def prober(address, target, settings):
            raise AssertionError("prober must not run for unresolved targets")

        dispatcher = ProbeDispatcher(
            ProbeSettings(count=5, timeout=1.0, concurrency=2),
            resolver=slow_failing_resolver,
            prober=prober,
        )

        start = time.monotonic()
        results = dispatcher.run([v4("a.invalid"), v4("b.invalid"), v4("c.invalid")])
        elapsed = time.monotonic() - start

        assert len(results) == 3
        assert all(not r.ok for r in results)
        assert elapsed < 0.85

    def test_dispatch_streams_results(self):
        network = FakeNetwork()
        targets = [v4("a"), v4("b")]

        stream = self.make(network, concurrency=2).dispatch(targets)
        first = next(stream)
        rest = list(stream)

        assert {first.target} | {r.target for r in rest} == set(targets)

    def test_statistics_use_configured_count(self):
        network = FakeNetwork(round_trips=[10.0, 20.0])

        [result] = self.make(network, count=4).run([v4("lossy")])

        assert result.packet_loss == 50.0
        assert result.min_ms == 10.0
        assert result.avg_ms == 15.0
        assert result.max_ms == 20.0


class TestProbeResult:
    """Statistics aggregation"""

    def setup_method(self):
        self.target = v4("8.8.8.8")

    def test_latencies_are_truncated_to_microseconds(self):
        result = ProbeResult.from_round_trips(self.target, "8.8.8.8", 5, [1.2345678, 2.0, 3.0009])

        assert result.packet_loss == 40.0
        assert result.min_ms == 1.234
        assert result.max_ms == 3.0
        assert result.avg_ms == 2.411

    def test_total_loss_reports_zero_latency(self):
        result = ProbeResult.from_round_trips(self.target, "8.8.8.8", 10, [])

        assert result.ok
        assert result.packet_loss == 100.0
        assert (result.min_ms, result.avg_ms, result.max_ms) == (0.0, 0.0, 0.0)

    def test_loss_never_negative(self):
        result = ProbeResult.from_round_trips(self.target, "8.8.8.8", 2, [1.0, 1.0, 1.0])

        assert result.packet_loss == 0.0

    def test_failed_result(self):
        result = ProbeResult.failed(self.target, "lookup failed")

        assert not result.ok
        assert result.error == "lookup failed"
