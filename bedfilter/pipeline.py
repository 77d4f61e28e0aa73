# File: bedfilter/pipeline.py
# Location: bedfilter/bedfilter/pipeline.py

"""
Concurrent streaming filter.

The FilterPipeline reads a data stream, passes its header through, then
runs one producer thread, a fixed pool of worker threads and one consumer
thread connected by two bounded queues:

    producer -> input queue -> N workers -> output queue -> consumer -> sink

The producer reads lines with the terminator detected on the first line,
workers decode each line and look it up in the CoordinateSet, and the
consumer writes the matching lines to the sink. The driver waits for all
N workers, closes the output queue and then waits for the consumer. After a
failure the producer is not waited on if it is still blocked reading the
stream.

With more than one worker, matches reach the sink in the order workers
finish them, which can differ from input order. ``concurrency=1`` or
``preserve_order=True`` gives input order.

run_filter() wires the pipeline to files for the command-line interface.
"""

import heapq
import logging
import queue
import threading
import time
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, BinaryIO, Callable, Dict, List, Optional, Tuple, Union

from .coordinates import CoordinateSet, read_coordinate_file, resolve_position_index
from .error_handling import BedFilterError, ConfigurationError, PipelineError
from .line_reader import DEFAULT_CHUNK_SIZE, LineReader, LineTerminator, detect_line_terminator
from .records import parse_record
from .utils import close_stream, open_input, open_output

logger = logging.getLogger("bedfilter")

DEFAULT_CONCURRENCY = 10
DEFAULT_QUEUE_SIZE = 100
VCF_HEADER_MARKER = "##fileformat=VCF"
VCF_HEADER_END_PREFIX = "#CHROM"

# Placed on a queue to tell its readers that no more items follow.
_CLOSED = object()

Sink = Union[BinaryIO, Callable[[bytes], Any]]


class PipelineState(str, Enum):
    """Lifecycle of a FilterPipeline run."""

    INIT = "init"
    HEADER_DETECTED = "header_detected"
    STREAMING = "streaming"
    DRAINING = "draining"
    DONE = "done"


@dataclass
class FilterStats:
    """Counters collected during one run."""

    terminator: Optional[LineTerminator] = None
    header_lines: int = 0
    records_read: int = 0
    records_matched: int = 0
    read_by_chrom: Counter = field(default_factory=Counter)
    matched_by_chrom: Counter = field(default_factory=Counter)
    elapsed_seconds: float = 0.0


class _Aborted(Exception):
    """Raised inside a task once another task has failed."""


class FilterPipeline:
    """
    Producer / worker-pool / consumer filter over a line-oriented stream.

    Parameters
    ----------
    coordinates : CoordinateSet
        Fully loaded coordinate set; it is only read from here on.
    concurrency : int
        Number of worker threads.
    queue_size : int
        Capacity of both the input and the output queue.
    normalize : bool
        Prefix data-line chromosome names with 'chr' before lookup. The
        coordinate set must have been loaded with the same setting.
    preserve_order : bool
        Write matches in input order using a reorder buffer in the consumer.
        The buffer is not bounded by ``queue_size``: while one worker is slow
        on an early line, later results accumulate in memory until it catches
        up.
    header_marker : str
        If the first line contains this text, the header continues up to
        and including the first line starting with ``header_end_prefix``.
    header_end_prefix : str
        Prefix of the last line of a multi-line header.
    chunk_size : int
        Read size used by the underlying LineReader.
    poll_interval : float
        Seconds a blocked task waits before checking whether the run failed.
    """

    def __init__(
        self,
        coordinates: CoordinateSet,
        concurrency: int = DEFAULT_CONCURRENCY,
        queue_size: int = DEFAULT_QUEUE_SIZE,
        normalize: bool = False,
        preserve_order: bool = False,
        header_marker: str = VCF_HEADER_MARKER,
        header_end_prefix: str = VCF_HEADER_END_PREFIX,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        poll_interval: float = 0.1,
    ):
        if concurrency < 1:
            raise ConfigurationError(
                f"concurrency must be at least 1, got {concurrency}", "concurrency"
            )
        if queue_size < 1:
            raise ConfigurationError(
                f"queue_size must be at least 1, got {queue_size}", "queue_size"
            )

        self.coordinates = coordinates
        self.concurrency = concurrency
        self.queue_size = queue_size
        self.normalize = normalize
        self.preserve_order = preserve_order
        self.header_marker = header_marker.encode("utf-8")
        self.header_end_prefix = header_end_prefix.encode("utf-8")
        self.chunk_size = chunk_size
        self.poll_interval = poll_interval

        self.state = PipelineState.INIT
        self._source: Optional[str] = None
        self._abort = threading.Event()
        self._failure: Optional[BaseException] = None
        self._failure_lock = threading.Lock()
        self._producer: Optional[threading.Thread] = None

    @property
    def reading(self) -> bool:
        """True while the producer thread of the last run is still using the stream."""
        return self._producer is not None and self._producer.is_alive()

    def run(self, stream: BinaryIO, sink: Sink, source: Optional[str] = None) -> FilterStats:
        """
        Filter ``stream`` into ``sink``.

        Parameters
        ----------
        stream : BinaryIO
            Open binary data stream. It is read to the end but not closed.
        sink : BinaryIO or callable
            Binary file object, or a callable receiving each chunk of bytes
            (the header block, then one matching line plus terminator per call).
        source : str, optional
            Name of the input used in error messages.

        Returns
        -------
        FilterStats

        Raises
        ------
        TerminatorNotFoundError
            If the stream ends before the first line terminator.
        RecordFormatError
            If any data line has a missing or non-integer position column.
        PipelineError
            If reading the stream or writing the sink fails.
        """
        self.state = PipelineState.INIT
        self._source = source
        self._abort = threading.Event()
        self._failure = None

        write = getattr(sink, "write", sink)
        stats = FilterStats()
        start = time.perf_counter()

        with LineReader(stream, self.chunk_size) as reader:
            terminator, header = self._read_header(reader, stats)
            write(header)
            self.state = PipelineState.STREAMING
            self._stream_records(reader, terminator, write, stats)

        flush = getattr(sink, "flush", None)
        if flush is not None:
            flush()

        stats.elapsed_seconds = time.perf_counter() - start
        self.state = PipelineState.DONE
        logger.info(
            f"Filtered {stats.records_read} records, kept {stats.records_matched} "
            f"in {stats.elapsed_seconds:.2f}s"
        )
        return stats

    # -- header -------------------------------------------------------------
    def _read_header(self, reader: LineReader, stats: FilterStats) -> Tuple[LineTerminator, bytes]:
        terminator, first_line = detect_line_terminator(reader)
        stats.terminator = terminator
        parts = [first_line, terminator.sequence]
        stats.header_lines = 1

        if self.header_marker in first_line:
            while True:
                raw = reader.readline(terminator.delimiter)
                if not raw:
                    logger.warning("Reached end of input before the end of the header block")
                    break
                parts.append(raw)
                stats.header_lines += 1
                if raw.startswith(self.header_end_prefix):
                    break

        self.state = PipelineState.HEADER_DETECTED
        logger.info(
            f"Detected {terminator.name} line endings and {stats.header_lines} header line(s)"
        )
        return terminator, b"".join(parts)

    # -- streaming ----------------------------------------------------------
    def _stream_records(
        self,
        reader: LineReader,
        terminator: LineTerminator,
        write: Callable[[bytes], Any],
        stats: FilterStats,
    ) -> None:
        input_queue: queue.Queue = queue.Queue(maxsize=self.queue_size)
        output_queue: queue.Queue = queue.Queue(maxsize=self.queue_size)

        # The producer can block inside a stream read indefinitely (an idle
        # pipe), so it runs on a daemon thread that a failed run never joins.
        produced: List[int] = []
        producer = threading.Thread(
            target=self._run_producer,
            args=(produced, reader, terminator, input_queue, stats.header_lines),
            name="bedfilter-producer",
            daemon=True,
        )
        producer.start()
        self._producer = producer

        with ThreadPoolExecutor(
            max_workers=self.concurrency + 1, thread_name_prefix="bedfilter"
        ) as executor:
            consumer = executor.submit(
                self._guard, "consumer", self._consume, output_queue, write, terminator
            )
            workers = [
                executor.submit(self._guard, f"worker-{i}", self._work, input_queue, output_queue)
                for i in range(self.concurrency)
            ]

            try:
                # One completion per worker; only then can nothing write to the output queue.
                for future in as_completed(workers):
                    read_by_chrom, matched_by_chrom = future.result()
                    stats.read_by_chrom.update(read_by_chrom)
                    stats.matched_by_chrom.update(matched_by_chrom)

                self.state = PipelineState.DRAINING
                self._put(output_queue, _CLOSED)
                stats.records_matched = consumer.result()
            except _Aborted:
                pass
            except Exception as e:
                self._fail(e)
            except BaseException:
                self._abort.set()
                raise

        if self._failure is None:
            producer.join()
            stats.records_read = produced[0]
            return

        # A producer waiting on a queue notices the abort within one poll.
        producer.join(self.poll_interval * 5)
        if producer.is_alive():
            logger.debug("producer still blocked on the input stream; not waiting for it")
        raise self._failure

    def _run_producer(self, produced: List[int], *args) -> None:
        try:
            produced.append(self._guard("producer", self._produce, *args))
        except Exception:
            # _guard has already recorded the failure for the driver.
            self._abort.set()

    def _guard(self, task: str, func: Callable, *args) -> Any:
        logger.debug(f"{task} started")
        try:
            result = func(*args)
        except _Aborted:
            logger.debug(f"{task} stopped after another task failed")
            raise
        except BedFilterError as e:
            self._fail(e)
            raise
        except Exception as e:
            error = PipelineError(task, e)
            self._fail(error)
            raise error from e
        logger.debug(f"{task} finished")
        return result

    def _fail(self, error: BaseException) -> None:
        with self._failure_lock:
            if self._failure is None:
                self._failure = error
        self._abort.set()

    def _put(self, q: queue.Queue, item: Any) -> None:
        while True:
            if self._abort.is_set():
                raise _Aborted()
            try:
                q.put(item, timeout=self.poll_interval)
                return
            except queue.Full:
                continue

    def _get(self, q: queue.Queue) -> Any:
        while True:
            if self._abort.is_set():
                raise _Aborted()
            try:
                return q.get(timeout=self.poll_interval)
            except queue.Empty:
                continue

    def _produce(
        self,
        reader: LineReader,
        terminator: LineTerminator,
        input_queue: queue.Queue,
        line_offset: int,
    ) -> int:
        delimiter = terminator.delimiter
        line_number = line_offset
        seq = 0
        while True:
            raw = reader.readline(delimiter)
            if not raw:
                break
            line_number += 1
            line = terminator.strip(raw)
            if not line:
                continue
            seq += 1
            self._put(input_queue, (seq, line_number, line))

        for _ in range(self.concurrency):
            self._put(input_queue, _CLOSED)
        return seq

    def _work(self, input_queue: queue.Queue, output_queue: queue.Queue) -> Tuple[Counter, Counter]:
        read_by_chrom: Counter = Counter()
        matched_by_chrom: Counter = Counter()
        while True:
            item = self._get(input_queue)
            if item is _CLOSED:
                break
            seq, line_number, line = item
            record = parse_record(
                line, normalize=self.normalize, source=self._source, line_number=line_number
            )
            read_by_chrom[record.chrom] += 1
            if self.coordinates.contains(record.chrom, record.pos):
                matched_by_chrom[record.chrom] += 1
                self._put(output_queue, (seq, line))
            elif self.preserve_order:
                self._put(output_queue, (seq, None))
        return read_by_chrom, matched_by_chrom

    def _consume(
        self, output_queue: queue.Queue, write: Callable[[bytes], Any], terminator: LineTerminator
    ) -> int:
        eol = terminator.sequence
        written = 0
        pending: List[Tuple[int, Optional[bytes]]] = []
        next_seq = 1
        while True:
            item = self._get(output_queue)
            if item is _CLOSED:
                break
            if not self.preserve_order:
                write(item[1] + eol)
                written += 1
                continue
            heapq.heappush(pending, item)
            while pending and pending[0][0] == next_seq:
                _, line = heapq.heappop(pending)
                next_seq += 1
                if line is not None:
                    write(line + eol)
                    written += 1
        return written


def run_filter(cfg: Dict[str, Any]) -> FilterStats:
    """
    Run a complete filter from configuration values.

    Loads the coordinate file, opens the data input and the output, runs
    the FilterPipeline and writes the optional statistics table.

    Parameters
    ----------
    cfg : dict
        Merged configuration. Uses 'bed_path', 'in_path', 'output_file',
        'chrom_index', 'position_index', 'position_index_override' (set only
        when the index was given explicitly), 'bim_position_index',
        'bim_suffix', 'normalize_chromosomes', 'concurrency', 'queue_size',
        'preserve_order', 'header_marker', 'header_end_prefix',
        'read_chunk_size' and 'stats_file'.

    Returns
    -------
    FilterStats
    """
    bed_path = cfg.get("bed_path")
    if not bed_path:
        raise ConfigurationError("A coordinate file (bed_path) is required", "bed_path")

    pos_index = resolve_position_index(
        bed_path,
        cfg.get("position_index_override"),
        default_index=cfg.get("position_index", 1),
        bim_index=cfg.get("bim_position_index", 3),
        bim_suffix=cfg.get("bim_suffix", ".bim"),
    )
    normalize = bool(cfg.get("normalize_chromosomes", False))
    coords = read_coordinate_file(bed_path, cfg.get("chrom_index", 0), pos_index, normalize)

    pipeline = FilterPipeline(
        coords,
        concurrency=cfg.get("concurrency", DEFAULT_CONCURRENCY),
        queue_size=cfg.get("queue_size", DEFAULT_QUEUE_SIZE),
        normalize=normalize,
        preserve_order=bool(cfg.get("preserve_order", False)),
        header_marker=cfg.get("header_marker", VCF_HEADER_MARKER),
        header_end_prefix=cfg.get("header_end_prefix", VCF_HEADER_END_PREFIX),
        chunk_size=cfg.get("read_chunk_size", DEFAULT_CHUNK_SIZE),
    )

    in_path = cfg.get("in_path")
    logger.debug(
        f"Filtering {in_path or 'stdin'} with {pipeline.concurrency} workers "
        f"(queue size {pipeline.queue_size}, preserve_order={pipeline.preserve_order})"
    )
    in_fh = open_input(in_path)
    try:
        out_fh = open_output(cfg.get("output_file"))
        try:
            stats = pipeline.run(in_fh, out_fh, source=in_path or "stdin")
        finally:
            close_stream(out_fh)
    finally:
        # Closing a buffered file blocks while another thread is reading it.
        if pipeline.reading:
            logger.debug("Input is still being read by an abandoned producer; leaving it open")
        else:
            close_stream(in_fh)

    if cfg.get("stats_file"):
        from .stats import filter_summary, write_stats

        write_stats(filter_summary(coords, stats), cfg["stats_file"])

    return stats
