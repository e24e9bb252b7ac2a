"""
Retry/backoff engine for playback failures.

Each retry re-issues the stream request for the same track after an
exponentially growing delay: the nth retry waits base_delay * 2^(n-1)
seconds. The attempt counter is bumped before the wait starts and is
capped, after which the engine gives up. Pending retries are plain asyncio
tasks, so cancelling one guarantees that it never fires.
"""

from asyncio import Task, get_event_loop, sleep as asyncio_sleep
from enum import Enum
from inspect import isawaitable
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional

from tenacity import AsyncRetrying, retry_if_exception_type

from jukebox.utils.constants import MAX_RETRIES, RETRY_BASE_DELAY
from jukebox.utils.exceptions import PlaybackError
from jukebox.utils.logger import create_logger

if TYPE_CHECKING:
  from tenacity import RetryCallState

  from jukebox.models.track import Track


AttemptFn = Callable[['Track'], Awaitable[None]]
GiveUpFn = Callable[['Track', Exception], Any]
SleepFn = Callable[[float], Awaitable[None]]


class RetryOutcome(Enum):
  """
  How a retry sequence ended.
  """
  SUCCESS = 'success'
  GAVE_UP = 'gave_up'


class RetryEngine:
  """
  Supervises retries for a single playback session.
  """

  def __init__(
    self,
    max_attempts: int = MAX_RETRIES,
    base_delay: float = RETRY_BASE_DELAY,
    *,
    sleep: Optional[SleepFn] = None
  ):
    self._max_attempts = max_attempts
    self._base_delay = base_delay
    self._sleep = sleep or asyncio_sleep
    self._attempts = 0
    self._status = ''
    self._task: Optional[Task] = None
    self._logger = create_logger(self.__class__.__name__)

  @property
  def attempts(self) -> int:
    """
    Returns the number of retries issued since the last reset.
    """
    return self._attempts

  @property
  def max_attempts(self) -> int:
    return self._max_attempts

  @property
  def exhausted(self) -> bool:
    """
    Returns whether the retry budget has been used up.
    """
    return self._attempts >= self._max_attempts

  @property
  def pending(self) -> bool:
    """
    Returns whether a retry sequence is scheduled or running.
    """
    return self._task is not None and not self._task.done()

  @property
  def status(self) -> str:
    """
    Returns the transient status message, e.g. 'Retrying... (2/5)'.
    """
    return self._status

  def delay_for(self, attempts: int) -> float:
    """
    Returns the delay before the retry issued after the given number of
    previous retries.
    """
    return (2 ** attempts) * self._base_delay

  def schedule(
    self,
    track: 'Track',
    attempt: AttemptFn,
    on_give_up: Optional[GiveUpFn] = None
  ) -> Task:
    """
    Schedules a retry sequence for a track, superseding any pending one.

    :param track: The track to retry.
    :param attempt: Coroutine function that reloads the track and starts
        playback, raising on failure.
    :param on_give_up: Called with the track and the last error once the
        budget is exhausted.
    :return: The task running the sequence. Its result is a RetryOutcome.
    """
    self.cancel()
    self._task = get_event_loop().create_task(self._run(track, attempt, on_give_up))
    return self._task

  def cancel(self):
    """
    Cancels the pending retry sequence, if any. Safe to call repeatedly.
    """
    if self._task is not None and not self._task.done():
      self._logger.debug('Cancelling pending retry')
      self._task.cancel()
    self._task = None

  def reset(self):
    """
    Clears the attempt counter and the status message.
    """
    self._attempts = 0
    self._status = ''

  async def wait(self) -> Optional[RetryOutcome]:
    """
    Waits for the pending retry sequence to finish, if there is one.
    """
    task = self._task
    if task is None:
      return None
    return await task

  def _should_stop(self, _: 'RetryCallState') -> bool:
    return self.exhausted

  async def _wait_for_next_attempt(self, track: 'Track'):
    delay = self.delay_for(self._attempts)
    self._attempts += 1
    self._status = f'Retrying... ({self._attempts}/{self._max_attempts})'
    self._logger.info(
      'Retrying `%s\' in %.1f s (attempt %d of %d)',
      track.title,
      delay,
      self._attempts,
      self._max_attempts
    )

    await self._sleep(delay)

  async def _run(
    self,
    track: 'Track',
    attempt: AttemptFn,
    on_give_up: Optional[GiveUpFn]
  ) -> RetryOutcome:
    try:
      if self.exhausted:
        raise PlaybackError(f'No retries left after {self._max_attempts} attempts')

      async for trial in AsyncRetrying(
        stop=self._should_stop,
        retry=retry_if_exception_type(Exception),
        reraise=True
      ):
        await self._wait_for_next_attempt(track)
        with trial:
          await attempt(track)
    except Exception as exc: # pylint: disable=broad-exception-caught
      self._logger.error('Giving up on `%s\' after %d attempts: %s', track.title, self._attempts, exc)
      self._status = ''
      if on_give_up is not None:
        result = on_give_up(track, exc)
        if isawaitable(result):
          await result
      return RetryOutcome.GAVE_UP

    self._logger.info('Recovered playback of `%s\'', track.title)
    self.reset()
    return RetryOutcome.SUCCESS
