"""
CrossfadeImage
==============

Per-image object a presentation layer talks to.

Orchestration:
    1. Build the RequestKey (empty url -> ConfigurationError, recorded in
       the FailureRegistry, raised synchronously)
    2. Seed the error flag from the FailureRegistry
    3. Acquire the Subscription for the key and observe it
    4. Feed frame/error events into the PhaseController
    5. Report every phase, frame or fade tick change via ``on_change``

The host renders ``current_view()`` after each notification and must call
``dispose()`` when the image goes away; otherwise the fetch and the fade
clock outlive the view.

Example:
    image = CrossfadeImage(request, pool=pool, failures=failures,
                           clock=AsyncioFadeClock(), on_change=redraw)
    ...
    view = image.current_view()
    ...
    image.dispose()
"""

import logging
from typing import Callable, Optional

from crossfade_image.cache.failures import FailureRegistry
from crossfade_image.cache.subscription import Subscription, SubscriptionPool
from crossfade_image.errors import ConfigurationError, FetchFailed
from crossfade_image.models.request import ImageRequest, RequestKey
from crossfade_image.models.view import ImageView, Phase, ViewContent
from crossfade_image.phase.clock import FadeClock
from crossfade_image.phase.controller import PhaseController
from crossfade_image.source.frame import Frame


logger = logging.getLogger(__name__)


class CrossfadeImage:
    """
    Facade binding one request to a subscription and a phase controller.

    Attributes:
        request: Current request configuration
        key: RequestKey derived from ``request``
        controller: The PhaseController driving the fade
        frame: Latest frame received for the current key
        last_failure: The FetchFailed received for the current key, if any

    Raises:
        ConfigurationError: On construction or update with an empty url
    """

    def __init__(
        self,
        request: ImageRequest,
        pool: SubscriptionPool,
        failures: FailureRegistry,
        clock: FadeClock,
        on_change: Optional[Callable[[], None]] = None,
    ) -> None:
        self.pool = pool
        self.failures = failures
        self.on_change = on_change

        self.request = request
        self.key = self._build_key(request)
        self.frame: Optional[Frame] = None
        self.last_failure: Optional[FetchFailed] = None

        self._subscription: Optional[Subscription] = None
        self._disposed: bool = False

        self.controller = PhaseController(request, clock, on_change=self._notify)
        self.controller.seed(has_error=failures.has_failed(self.key))
        self._resolve()

    # -------------------------------------------------------------------------
    # Host API
    # -------------------------------------------------------------------------

    @property
    def phase(self) -> Phase:
        return self.controller.phase

    @property
    def has_error(self) -> bool:
        return self.controller.has_error

    @property
    def subscription(self) -> Optional[Subscription]:
        return self._subscription

    @property
    def disposed(self) -> bool:
        return self._disposed

    def current_view(self) -> ImageView:
        """
        Snapshot of everything the presentation layer needs to draw.

        Returns:
            ImageView with phase, frame, error flag, fade coefficient and
            which renderable to draw
        """
        controller = self.controller
        return ImageView(
            phase=controller.phase,
            frame=self.frame,
            has_error=controller.has_error,
            fade_coefficient=controller.fade_coefficient,
            content=self._content(),
        )

    def update(self, request: ImageRequest) -> None:
        """
        Apply a new request.

        A changed key (url or scale) detaches from the old subscription and
        attaches to the new one, dropping the current frame. An unchanged
        key keeps the subscription. In both cases the error flag is
        re-seeded from the FailureRegistry.

        Raises:
            ConfigurationError: If the new url is empty
        """
        self._check_alive()
        new_key = self._build_key(request)
        self.request = request
        self.controller.configure(request)

        if new_key == self.key:
            self.controller.seed(
                has_error=self.failures.has_failed(new_key) or self.last_failure is not None,
                has_frame=self.frame is not None,
            )
            self.key = new_key
            self.controller.evaluate()
            return

        logger.debug(f"Request changed {self.key!r} -> {new_key!r}")
        self._detach()
        self.key = new_key
        self.frame = None
        self.last_failure = None
        self.controller.seed(has_error=self.failures.has_failed(new_key))
        self._resolve()

    def reload(self) -> None:
        """
        Re-resolve the subscription for the current key.

        No action if the held subscription is still the live one for the key.
        """
        self._check_alive()
        live = self.pool.get(self.key)
        if live is not None and live is self._subscription and live.active:
            return
        self._detach()
        self.controller.seed(
            has_error=self.failures.has_failed(self.key),
            has_frame=self.frame is not None,
        )
        self._resolve()

    def dispose(self) -> None:
        """Stop observing the subscription and release the fade clock."""
        if self._disposed:
            return
        self._disposed = True
        self._detach()
        self.controller.dispose()
        logger.debug(f"Disposed image for {self.key!r}")

    def describe(self) -> dict:
        """Diagnostic summary of this image."""
        return {
            "key": repr(self.key),
            "phase": self.controller.phase.value,
            "has_error": self.controller.has_error,
            "has_frame": self.frame is not None,
            "fade_progress": self.controller.fade_progress,
            "history": [phase.value for phase in self.controller.history],
            "subscription": repr(self._subscription) if self._subscription else None,
        }

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _build_key(self, request: ImageRequest) -> RequestKey:
        try:
            return RequestKey.from_request(request)
        except ConfigurationError as e:
            self.failures.mark_rejected(e.url, e.scale)
            raise

    def _resolve(self) -> None:
        subscription = self.pool.acquire(self.key)
        self._subscription = subscription
        subscription.add_observer(self._handle_frame, self._handle_error)

        if self.controller.phase is Phase.START:
            self.controller.evaluate()

    def _detach(self) -> None:
        if self._subscription is not None:
            self._subscription.remove_observer(self._handle_frame)
            self._subscription = None

    def _handle_frame(self, frame: Frame) -> None:
        if self._disposed:
            return
        self.frame = frame
        before = self.controller.phase
        self.controller.notify_frame()
        if self.controller.phase is before:
            # Later animation frame, or a frame arriving in a settled phase.
            self._notify()

    def _handle_error(self, failure: FetchFailed) -> None:
        if self._disposed:
            return
        self.last_failure = failure
        logger.debug(f"Image {self.key!r} errored: {failure}")
        before = self.controller.phase
        self.controller.notify_error()
        if self.controller.phase is before:
            self._notify()

    def _content(self) -> ViewContent:
        controller = self.controller
        if controller.showing_placeholder and controller.has_placeholder_view:
            return ViewContent.PLACEHOLDER
        if controller.has_error and controller.has_error_view:
            return ViewContent.ERROR
        if self.frame is not None:
            return ViewContent.IMAGE
        return ViewContent.BLANK

    def _check_alive(self) -> None:
        if self._disposed:
            raise RuntimeError(f"CrossfadeImage for {self.key!r} was disposed")

    def _notify(self) -> None:
        if self.on_change is not None and not self._disposed:
            self.on_change()
