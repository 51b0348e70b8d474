"""
Playback Controller for the soundboard.

Owns the single output slot and turns play requests into sounding
handles. Starting a new playback always supersedes any in-flight or
currently sounding one.

Supersession is cooperative: every play() captures a request id (epoch
token) and re-checks it after each suspension point (device resume,
buffer acquisition). A request whose id is no longer the latest simply
stops; its fetch/decode may still finish in the background and populate
the buffer cache, but it never reaches the output slot.
"""

import asyncio
import logging
import random
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Set

from soundboard.buffers.buffer_store import BufferStore
from soundboard.buffers.decoded_buffer import DecodedBuffer
from soundboard.catalog.clip_catalog import ALL_FILES, ClipCatalog
from soundboard.catalog.segment import Segment
from soundboard.errors import DecodeError, DeviceError, LoadError
from soundboard.outputs.base_device import BaseDevice, PlaybackHandle
from soundboard.playback.listener import PlaybackListener
from soundboard.playback.output_slot import OutputSlot
from soundboard.playback.play_request import PlayRequest

if TYPE_CHECKING:
    from soundboard.playback.sequence_player import SequencePlayer

logger = logging.getLogger(__name__)


class PlaybackController:
    """
    Coordinates play requests against one shared output slot.

    All methods must be called from the event loop thread. No locks are
    used; ordering across suspension points is handled by the request id.
    """

    def __init__(
        self,
        catalog: ClipCatalog,
        buffers: BufferStore,
        device: BaseDevice,
        listener: Optional[PlaybackListener] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize playback controller.

        Args:
            catalog: Clip catalog to resolve names against
            buffers: Buffer store for decoded source files
            device: Output device that creates playback handles
            listener: Optional consumer of started/ended notifications
            rng: Random source for segment selection (default: new random.Random)
        """
        self.catalog = catalog
        self.buffers = buffers
        self.device = device
        self._rng = rng or random.Random()

        self._slot = OutputSlot()
        # Clip whose started notification has not yet been balanced by an ended one
        self._announced: Optional[str] = None
        self._request_counter = 0
        self._active_filter = ALL_FILES

        self._listeners: List[PlaybackListener] = []
        if listener is not None:
            self._listeners.append(listener)

        self._sequence: Optional["SequencePlayer"] = None

        # Completion waiters for play_one_and_wait(), keyed by handle
        self._waiters: Dict[PlaybackHandle, asyncio.Future] = {}
        # Strong references to running play() pipelines
        self._tasks: Set[asyncio.Task] = set()

        # Last device failure; cleared by the next successful playback
        self.device_error: Optional[DeviceError] = None

    # ------------------------------------------------------------------
    # Wiring and state
    # ------------------------------------------------------------------

    def add_listener(self, listener: PlaybackListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: PlaybackListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def attach_sequence(self, sequence: "SequencePlayer") -> None:
        """Register the sequence player that direct play() and stop() must halt."""
        self._sequence = sequence

    @property
    def active_filter(self) -> str:
        """File name that segments are restricted to, or "all"."""
        return self._active_filter

    def set_filter(self, active_filter: Optional[str]) -> None:
        """
        Select the file filter used by subsequent play requests.

        Args:
            active_filter: File name, or None/"all" for no filtering
        """
        self._active_filter = active_filter or ALL_FILES
        logger.debug(f"[PLAYBACK] Active filter: {self._active_filter}")

    @property
    def request_id(self) -> int:
        """Latest request id handed out."""
        return self._request_counter

    @property
    def current_clip(self) -> Optional[str]:
        """Clip whose handle occupies the output slot, if any."""
        return self._slot.clip_name

    @property
    def current_handle(self) -> Optional[PlaybackHandle]:
        return self._slot.handle

    def is_playing(self) -> bool:
        return not self._slot.is_empty()

    # ------------------------------------------------------------------
    # Single-shot playback
    # ------------------------------------------------------------------

    def play(self, name: str) -> Optional["asyncio.Task[bool]"]:
        """
        Play a random segment of a clip, superseding anything already playing.

        Releasing the slot, taking a request id and choosing the segment all
        happen synchronously inside this call, so rapid repeated calls can
        never overlap. The rest of the request runs as a task.

        Must be called with a running event loop.

        Args:
            name: Clip name

        Returns:
            Task resolving to True if this request installed a handle,
            or None if nothing of the clip is playable under the active filter
        """
        if self._sequence is not None and self._sequence.running:
            logger.info(f"[PLAYBACK] Direct play of '{name}' takes priority; stopping sequence")
            self._sequence.stop()

        self._release_slot()

        self._request_counter += 1
        request_id = self._request_counter

        candidates = self.catalog.segments_for(name, self._active_filter)
        if not candidates:
            logger.debug(f"[PLAYBACK] Nothing playable for '{name}' (filter={self._active_filter})")
            self._clear_highlight()
            return None

        request = PlayRequest(request_id=request_id, clip_name=name, segment=self._rng.choice(candidates))
        logger.debug(
            f"[PLAYBACK] Request #{request_id}: '{name}' → {request.segment.file} "
            f"@{request.segment.start}s for {request.segment.duration}s"
        )

        task = asyncio.ensure_future(self._run_request(request))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _is_stale(self, request: PlayRequest, stage: str) -> bool:
        if request.request_id != self._request_counter:
            logger.debug(
                f"[PLAYBACK] Request #{request.request_id} ('{request.clip_name}') superseded "
                f"by #{self._request_counter} {stage}; abandoning"
            )
            return True
        return False

    async def _run_request(self, request: PlayRequest) -> bool:
        if not await self._resume_device():
            self._abandon_failed(request)
            return False

        if self._is_stale(request, "after device resume"):
            return False

        buffer = await self._acquire(request.segment.file)
        if buffer is None:
            self._abandon_failed(request)
            return False

        if self._is_stale(request, "after buffer load"):
            return False

        # Anything installed meanwhile (e.g. by the sequence loop) goes first
        self._release_slot()

        if self._is_stale(request, "before commit"):
            return False

        return self._commit(request.clip_name, request.segment, buffer) is not None

    def _abandon_failed(self, request: PlayRequest) -> None:
        # Latest request failed: nothing will replace the released clip's highlight
        if request.request_id == self._request_counter:
            self._clear_highlight()

    # ------------------------------------------------------------------
    # Play and wait (sequence mode primitive)
    # ------------------------------------------------------------------

    async def play_one_and_wait(self, name: str, should_abandon: Optional[Callable[[], bool]] = None) -> bool:
        """
        Play a random segment of a clip and wait for it to end.

        Used by the sequence loop, which is the only caller, so request ids
        are not checked. should_abandon lets the caller cancel cooperatively
        after each suspension point.

        Args:
            name: Clip name
            should_abandon: Returns True once the caller no longer wants this clip

        Returns:
            True if the clip played out naturally; False if nothing was
            playable, loading failed, it was abandoned, or it was stopped
        """
        self._release_slot()
        # Outstanding single-shot requests must not cut this clip off later
        self._request_counter += 1

        candidates = self.catalog.segments_for(name, self._active_filter)
        if not candidates:
            logger.debug(f"[PLAYBACK] Nothing playable for '{name}' (filter={self._active_filter})")
            self._clear_highlight()
            return False
        segment = self._rng.choice(candidates)

        if not await self._resume_device():
            self._clear_highlight()
            return False
        if should_abandon is not None and should_abandon():
            return False

        buffer = await self._acquire(segment.file)
        if buffer is None:
            self._clear_highlight()
            return False
        if should_abandon is not None and should_abandon():
            return False

        self._release_slot()

        waiter = asyncio.get_running_loop().create_future()
        handle = self._commit(name, segment, buffer, waiter=waiter)
        if handle is None:
            return False

        try:
            return await waiter
        finally:
            self._waiters.pop(handle, None)

    # ------------------------------------------------------------------
    # Stop
    # ------------------------------------------------------------------

    def stop(self) -> None:
        """
        Silence the output slot now and halt any running sequence.

        In-flight play requests become stale; pending completion waiters
        resolve as not completed. Emits on_playback_ended for the clip that
        was sounding (or was last announced, if a newer request is still
        loading) so its highlight clears immediately.
        """
        self._request_counter += 1
        released = self._release_slot()

        if self._sequence is not None:
            self._sequence.halt()

        if released is not None:
            logger.info(f"[PLAYBACK] Stopped '{released}'")
        self._clear_highlight()

    async def aclose(self) -> None:
        """Stop playback and wait for abandoned play() pipelines to unwind."""
        self.stop()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------

    def _release_slot(self) -> Optional[str]:
        """Release the slot's handle; returns the clip it was playing."""
        clip_name = self._slot.clip_name
        handle = self._slot.release()
        if handle is None:
            return None
        logger.debug(f"[PLAYBACK] Released handle for '{clip_name}'")
        self._resolve_waiter(handle, False)
        return clip_name

    async def _resume_device(self) -> bool:
        try:
            await self.device.resume_if_suspended()
        except DeviceError as e:
            self._report_device_error(e)
            return False
        return True

    async def _acquire(self, file: str) -> Optional[DecodedBuffer]:
        try:
            return await self.buffers.get(file)
        except (LoadError, DecodeError) as e:
            logger.warning(f"[PLAYBACK] Buffer unavailable, request dropped: {e}")
            return None

    def _commit(
        self,
        name: str,
        segment: Segment,
        buffer: DecodedBuffer,
        waiter: Optional[asyncio.Future] = None,
    ) -> Optional[PlaybackHandle]:
        """Announce, install and begin a handle for the segment; slot must be empty."""
        self._announced = name
        self._notify("on_playback_started", name)

        try:
            handle = self.device.create_handle(buffer, segment.start, segment.duration)
            if waiter is not None:
                self._waiters[handle] = waiter
            handle.on_finished(lambda h: self._on_handle_finished(h, name))
            self._slot.install(handle, name)
            handle.begin()
        except DeviceError as e:
            self._report_device_error(e)
            self._release_slot()
            if waiter is not None and not waiter.done():
                waiter.set_result(False)
            self._clear_highlight()
            return None

        self.device_error = None
        logger.info(f"[PLAYBACK] Playing '{name}': {segment.file} @{segment.start}s for {segment.duration}s")
        return handle

    def _on_handle_finished(self, handle: PlaybackHandle, name: str) -> None:
        if not self._slot.holds(handle):
            # A newer request owns the slot and its cleanup
            logger.debug(f"[PLAYBACK] Completion of replaced handle for '{name}' ignored")
            self._resolve_waiter(handle, False)
            return

        self._slot.release()
        logger.debug(f"[PLAYBACK] Finished '{name}'")
        self._clear_highlight()
        self._resolve_waiter(handle, True)

    def _clear_highlight(self) -> None:
        """Emit on_playback_ended for the announced clip once nothing is sounding."""
        if self._announced is None or not self._slot.is_empty():
            return
        name = self._announced
        self._announced = None
        self._notify("on_playback_ended", name)

    def _resolve_waiter(self, handle: PlaybackHandle, completed: bool) -> None:
        waiter = self._waiters.pop(handle, None)
        if waiter is not None and not waiter.done():
            waiter.set_result(completed)

    def _report_device_error(self, error: DeviceError) -> None:
        if self.device_error is None:
            logger.error(f"[PLAYBACK] Output device unavailable: {error}")
        else:
            logger.debug(f"[PLAYBACK] Output device still unavailable: {error}")
        self.device_error = error

    def _notify(self, method: str, clip_name: str) -> None:
        # Copy so listeners may unsubscribe from inside a callback
        for listener in list(self._listeners):
            try:
                getattr(listener, method)(clip_name)
            except Exception as e:
                # Listener failures must not affect playback
                logger.warning(f"[PLAYBACK] Listener {method} failed for '{clip_name}': {e}", exc_info=True)
