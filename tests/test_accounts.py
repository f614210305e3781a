import pytest

from kezekshi_dashboard.core.errors import KezekshiAPIError, ValidationError
from kezekshi_dashboard.schemas.account import ProfileUpdate, RegisterRequest
from kezekshi_dashboard.services.accounts import AccountService
from kezekshi_dashboard.services.profile import ProfileService, region_name, school_display_name


class FakeAccountClient:
    def __init__(self, login_reply=None, registered=False):
        self.login_reply = login_reply if login_reply is not None else {"access_token": "tok"}
        self.registered = registered
        self.sent = []
        self.user = {"roles": ["US"], "fullname": "Иванов Иван", "phone": "+77011234567", "iin": "900101300123",
                     "region_id": 1, "school_id": 10}

    async def login(self, phone, password, device_token=""):
        self.sent.append(("login", phone))
        return self.login_reply

    async def get_user_data(self, token):
        return self.user

    async def search_phone_number(self, phone):
        self.sent.append(("search", phone))
        return {"userIsRegistered": self.registered}

    async def register_user(self, payload):
        self.sent.append(("register", payload))
        return {"ok": True}

    async def reset_password(self, phone, new_password):
        self.sent.append(("reset", phone))
        return {"ok": True}

    async def change_user_data(self, token, payload):
        self.sent.append(("change", payload))
        self.user = {**self.user, "fullname": payload["new_fullname"]}

    async def get_regions(self):
        return [{"id": 1, "name_ru": "Астана"}]

    async def get_schools(self, region_id):
        return [{"school_id": 10, "region_id": 1, "school_name_ru": "Школа-лицей 10"}]

    async def download_user_photo(self, token):
        raise KezekshiAPIError(500, "storage down")


@pytest.mark.asyncio
async def test_login_returns_token_profile_and_landing_page():
    client = FakeAccountClient()
    result = await AccountService(client).login("8 701 123 45 67", "secret")
    assert result.access_token == "tok"
    assert result.landing_page == "/my-children"
    assert client.sent[0] == ("login", "+77011234567")


@pytest.mark.asyncio
async def test_login_requires_phone_and_password():
    with pytest.raises(ValidationError):
        await AccountService(FakeAccountClient()).login("", "secret")


@pytest.mark.asyncio
async def test_login_without_token_is_upstream_error():
    with pytest.raises(KezekshiAPIError) as exc:
        await AccountService(FakeAccountClient(login_reply={})).login("87011234567", "secret")
    assert exc.value.status == 502


@pytest.mark.asyncio
async def test_phone_lookup_rejects_registered_number():
    with pytest.raises(ValidationError):
        await AccountService(FakeAccountClient(registered=True)).check_phone_available("87011234567")
    assert await AccountService(FakeAccountClient()).check_phone_available("87011234567") == {"userIsRegistered": False}


@pytest.mark.asyncio
async def test_register_builds_fullname():
    client = FakeAccountClient()
    form = RegisterRequest(phone="87011234567", password="p", first_name="Иван", last_name="Иванов", iin="1")
    await AccountService(client).register(form)
    payload = client.sent[0][1]
    assert payload["fullname"] == "Иванов Иван"
    assert payload["phone"] == "+77011234567"


@pytest.mark.asyncio
async def test_profile_load_resolves_names_and_survives_photo_failure():
    profile = await ProfileService(FakeAccountClient()).load("tok")
    assert profile.region_name == "Астана"
    assert profile.school_name == "Школа-лицей 10"
    assert profile.photo_url is None


@pytest.mark.asyncio
async def test_profile_update_returns_refreshed_user():
    client = FakeAccountClient()
    user = await ProfileService(client).update("tok", ProfileUpdate(fullname="Новое Имя", phone="+77011234567"))
    assert user["fullname"] == "Новое Имя"
    assert client.sent[0][1]["new_fullname"] == "Новое Имя"


def test_profile_name_fallbacks_and_edit_form():
    assert region_name({"region_id": 5}, []) == 5
    assert region_name({}, []) == ""
    assert school_display_name({"school_id": 7}, []) == 7
    form = ProfileService.edit_form({"fullname": "А", "phone": None})
    assert (form.fullname, form.phone, form.iin) == ("А", "", "")
