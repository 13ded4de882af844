import pytest
from pymongo.errors import ServerSelectionTimeoutError
from redis.exceptions import ConnectionError as RedisConnectionError

from core.exceptions import InternalError, NotFoundError, handles_store_errors


class Repo:
    @handles_store_errors("load thing")
    async def load(self, thing_id, fail_with=None):
        if fail_with is not None:
            raise fail_with
        return thing_id


@pytest.mark.parametrize("error", [ServerSelectionTimeoutError("no primary"), RedisConnectionError("refused")])
async def test_store_errors_become_internal_error(error):
    with pytest.raises(InternalError) as exc:
        await Repo().load("abc", fail_with=error)
    assert exc.value.status_code == 500
    assert exc.value.detail == "Failed to load thing"


async def test_domain_errors_pass_through():
    with pytest.raises(NotFoundError):
        await Repo().load("abc", fail_with=NotFoundError("Thing not found"))
    assert await Repo().load("abc") == "abc"
