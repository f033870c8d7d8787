import pytest

from spotify_contract.errors import HTTPResponseError


pytestmark = [pytest.mark.live, pytest.mark.asyncio(loop_scope="session")]


async def test_tc001_get_single_album(call_api, run_context) -> None:
    albums = run_context.get_test_data("albums")
    path = run_context.get_test_data("endpoints")["albums"]

    response = await call_api(
        "TC-001",
        f"{path}/{albums['valid_id']}",
        endpoint="/albums/{id}",
        params={"market": albums["market"]},
    )

    result = run_context.validate_http_response(response)
    assert result.is_valid, result.validations
    assert "name" in response.json()


async def test_tc002_invalid_album_id_is_bad_request(call_api, run_context) -> None:
    albums = run_context.get_test_data("albums")
    path = run_context.get_test_data("endpoints")["albums"]

    with pytest.raises(HTTPResponseError) as excinfo:
        await call_api(
            "TC-002",
            f"{path}/{albums['invalid_id']}",
            endpoint="/albums/{id}",
            params={"market": albums["market"]},
        )

    assert excinfo.value.status == run_context.error_codes["bad_request"]


async def test_tc003_get_several_albums(call_api, run_context) -> None:
    albums = run_context.get_test_data("albums")
    path = run_context.get_test_data("endpoints")["albums"]

    response = await call_api(
        "TC-003",
        path,
        params={"ids": albums["valid_ids"], "market": albums["market"]},
    )

    result = run_context.validate_http_response(response)
    assert result.is_valid, result.validations
    assert len(response.json()["albums"]) > 1


async def test_tc004_invalid_market_is_rejected(call_api, run_context) -> None:
    albums = run_context.get_test_data("albums")
    path = run_context.get_test_data("endpoints")["albums"]

    with pytest.raises(HTTPResponseError) as excinfo:
        await call_api(
            "TC-004",
            f"{path}/{albums['valid_id']}",
            endpoint="/albums/{id}",
            params={"market": albums["invalid_market"]},
        )

    assert excinfo.value.status in (run_context.error_codes["bad_request"], run_context.error_codes["not_found"])
