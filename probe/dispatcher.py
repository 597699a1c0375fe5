"""Concurrent probe dispatcher.

Targets are resolved first on a small resolver pool. Resolved targets go to
a bounded work queue drained by a fixed set of probe workers, one target at
a time per worker. Every target produces exactly one ProbeResult, either
statistics or a per-target error. A coordinator thread puts a DONE marker on
the result queue once all resolvers and workers have finished, so consumers
stop on that marker instead of counting results.
"""
import queue
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, Iterable, Iterator, List, Optional
from logging_config import get_logger
from .icmp import icmp_round_trips, resolve_target
from .models import ProbeError, ProbeResult, ProbeSettings, ProbeTarget


logger = get_logger(__name__)

Resolver = Callable[[ProbeTarget], str]
Prober = Callable[[str, ProbeTarget, ProbeSettings], List[float]]

_STOP = object()
_DONE = object()


class ProbeDispatcher:
    """Run one probe per target with at most ``settings.concurrency`` probes in flight"""

    def __init__(self, settings: ProbeSettings,
                 resolver: Optional[Resolver] = None,
                 prober: Optional[Prober] = None):
        self.settings = settings
        self._resolve = resolver or resolve_target
        self._probe = prober or icmp_round_trips

    def worker_count(self, target_count: int) -> int:
        return max(0, min(self.settings.concurrency, target_count))

    def run(self, targets: Iterable[ProbeTarget]) -> List[ProbeResult]:
        """Probe all targets and return the results in completion order"""
        return list(self.dispatch(targets))

    def dispatch(self, targets: Iterable[ProbeTarget]) -> Iterator[ProbeResult]:
        """Yield results as workers finish them; ends after the last result"""
        targets = list(targets)
        workers = self.worker_count(len(targets))
        if workers == 0:
            return

        work: "queue.Queue" = queue.Queue(maxsize=len(targets) + workers)
        results: "queue.Queue" = queue.Queue()

        resolver_pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="probe_resolve")
        worker_pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="probe_worker")

        worker_futures = [worker_pool.submit(self._work, work, results) for _ in range(workers)]
        resolve_futures = [resolver_pool.submit(self._resolve_into, target, work, results) for target in targets]

        coordinator = threading.Thread(
            target=self._close_when_done,
            args=(resolve_futures, worker_futures, work, results, workers, resolver_pool, worker_pool),
            name="probe_coordinator",
            daemon=True,
        )
        coordinator.start()

        while True:
            item = results.get()
            if item is _DONE:
                break
            yield item

    def _resolve_into(self, target: ProbeTarget, work: "queue.Queue", results: "queue.Queue") -> None:
        """Resolve one target; failures become results without touching the work queue"""
        try:
            address = self._resolve(target)
        except ProbeError as e:
            results.put(ProbeResult.failed(target, str(e)))
            return
        except Exception as e:
            logger.error("Unexpected resolver failure", target=target.host, error=str(e), exc_info=True)
            results.put(ProbeResult.failed(target, f"resolve {target.host}: {e}"))
            return
        work.put((target, address))

    def _work(self, work: "queue.Queue", results: "queue.Queue") -> None:
        """Worker loop: pull one resolved target at a time until the stop marker"""
        while True:
            item = work.get()
            if item is _STOP:
                return
            target, address = item
            results.put(self._probe_one(target, address))

    def _probe_one(self, target: ProbeTarget, address: str) -> ProbeResult:
        try:
            round_trips = self._probe(address, target, self.settings)
        except ProbeError as e:
            return ProbeResult.failed(target, str(e), address=address)
        except Exception as e:
            logger.error("Unexpected probe failure", target=target.host, address=address, error=str(e), exc_info=True)
            return ProbeResult.failed(target, f"probe {address}: {e}", address=address)
        return ProbeResult.from_round_trips(target, address, self.settings.count, round_trips)

    @staticmethod
    def _close_when_done(resolve_futures, worker_futures, work, results, workers, resolver_pool, worker_pool) -> None:
        wait(resolve_futures)
        resolver_pool.shutdown(wait=True)
        for _ in range(workers):
            work.put(_STOP)
        wait(worker_futures)
        worker_pool.shutdown(wait=True)
        results.put(_DONE)
