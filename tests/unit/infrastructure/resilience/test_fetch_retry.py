import pytest
from unittest.mock import AsyncMock

from feedcache.domain.exceptions import ContentDecodeError, MaxRetryError, NetworkError
from feedcache.infrastructure.resilience.fetch_retry import FetchRetryService


@pytest.fixture
def sleep():
    return AsyncMock()


@pytest.mark.asyncio
async def test_success_on_first_attempt(sleep: AsyncMock):
    service = FetchRetryService(max_retries=3, sleep=sleep)
    func = AsyncMock(return_value="posts")

    assert await service.execute_with_retry(func, operation_name="fetch") == "posts"
    func.assert_awaited_once()
    sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_retries_network_errors_with_backoff(sleep: AsyncMock):
    service = FetchRetryService(max_retries=3, initial_backoff_s=0.5, backoff_factor=2.0, sleep=sleep)
    func = AsyncMock(side_effect=[NetworkError("timeout"), NetworkError("reset"), "posts"])

    assert await service.execute_with_retry(func) == "posts"
    assert func.await_count == 3
    assert [call.args[0] for call in sleep.await_args_list] == [0.5, 1.0]


@pytest.mark.asyncio
async def test_gives_up_after_max_retries(sleep: AsyncMock):
    service = FetchRetryService(max_retries=2, sleep=sleep)
    func = AsyncMock(side_effect=NetworkError("offline"))

    with pytest.raises(MaxRetryError) as excinfo:
        await service.execute_with_retry(func)
    assert excinfo.value.attempts == 3
    assert isinstance(excinfo.value.original_exception, NetworkError)
    assert func.await_count == 3


@pytest.mark.asyncio
async def test_decode_errors_are_not_retried(sleep: AsyncMock):
    service = FetchRetryService(max_retries=3, sleep=sleep)
    func = AsyncMock(side_effect=ContentDecodeError("bad schema"))

    with pytest.raises(ContentDecodeError):
        await service.execute_with_retry(func)
    func.assert_awaited_once()
    sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_zero_retries(sleep: AsyncMock):
    service = FetchRetryService(max_retries=0, sleep=sleep)
    with pytest.raises(MaxRetryError):
        await service.execute_with_retry(AsyncMock(side_effect=NetworkError("offline")))
    sleep.assert_not_awaited()


def test_from_policy():
    service = FetchRetryService.from_policy({"max_retries": 5, "initial_delay": 0.1, "factor": 3.0})
    assert (service.max_retries, service.initial_backoff_s, service.backoff_factor) == (5, 0.1, 3.0)


def test_negative_retries_rejected():
    with pytest.raises(ValueError):
        FetchRetryService(max_retries=-1)
