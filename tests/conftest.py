# tests/conftest.py
import copy
import itertools
import re

import pytest
from bson import ObjectId
from httpx import ASGITransport, AsyncClient
from pymongo.errors import DuplicateKeyError

import app.db.mongo as mongo
from app.core.config import settings
from app.core.security import hash_password
from app.main import app
from app.repositories import users as users_repo
from app.services import login_limiter

PASSWORD = "Secret123!"


# ---------------------------------------------------------------------------
# In-memory stand-ins for the Motor client and the Redis client
# ---------------------------------------------------------------------------

def _resolve(doc, path):
    values = [doc]
    for part in path.split("."):
        nxt = []
        for v in values:
            if isinstance(v, dict) and part in v:
                nxt.append(v[part])
            elif isinstance(v, list):
                for item in v:
                    if isinstance(item, dict) and part in item:
                        nxt.append(item[part])
        values = nxt
    return values


def _flatten(values):
    out = list(values)
    for v in values:
        if isinstance(v, list):
            out.extend(v)
    return out


def _match_condition(values, cond):
    flat = _flatten(values)
    if isinstance(cond, dict) and cond and all(k.startswith("$") for k in cond):
        for op, arg in cond.items():
            if op == "$in":
                ok = any(c in arg for c in flat)
            elif op == "$nin":
                ok = not any(c in arg for c in flat)
            elif op == "$ne":
                ok = all(c != arg for c in flat)
            elif op == "$regex":
                flags = re.IGNORECASE if "i" in cond.get("$options", "") else 0
                ok = any(isinstance(c, str) and re.search(arg, c, flags) for c in flat)
            elif op == "$options":
                ok = True
            elif op == "$gt":
                ok = any(c is not None and c > arg for c in flat)
            elif op == "$gte":
                ok = any(c is not None and c >= arg for c in flat)
            elif op == "$lt":
                ok = any(c is not None and c < arg for c in flat)
            elif op == "$lte":
                ok = any(c is not None and c <= arg for c in flat)
            else:
                raise NotImplementedError(op)
            if not ok:
                return False
        return True
    if cond is None:
        return not flat or any(c is None for c in flat)
    return any(c == cond for c in flat)


def _matches(doc, query):
    for key, cond in query.items():
        if key == "$or":
            if not any(_matches(doc, sub) for sub in cond):
                return False
        elif key == "$and":
            if not all(_matches(doc, sub) for sub in cond):
                return False
        elif not _match_condition(_resolve(doc, key), cond):
            return False
    return True


def _parent(doc, path, create=True):
    parts = path.split(".")
    cur = doc
    for part in parts[:-1]:
        if not isinstance(cur.get(part), dict):
            if not create:
                return None, parts[-1]
            cur[part] = {}
        cur = cur[part]
    return cur, parts[-1]


def _apply_update(doc, update):
    for op, fields in update.items():
        for path, value in fields.items():
            parent, leaf = _parent(doc, path)
            if op == "$set":
                parent[leaf] = copy.deepcopy(value)
            elif op == "$inc":
                parent[leaf] = parent.get(leaf, 0) + value
            elif op == "$push":
                parent.setdefault(leaf, []).append(copy.deepcopy(value))
            elif op == "$addToSet":
                items = parent.setdefault(leaf, [])
                if value not in items:
                    items.append(copy.deepcopy(value))
            elif op == "$pull":
                parent[leaf] = [v for v in parent.get(leaf, []) if v != value]
            else:
                raise NotImplementedError(op)


class _Result:
    def __init__(self, **kw):
        self.__dict__.update(kw)


class FakeCursor:
    def __init__(self, docs):
        self._docs = docs
        self._skip = 0
        self._limit = 0

    def sort(self, key, direction=None):
        keys = key if isinstance(key, list) else [(key, direction or 1)]
        for field, dirn in reversed(keys):
            def sort_key(d, field=field):
                values = _resolve(d, field)
                v = values[0] if values else None
                return (v is not None, v if v is not None else 0)
            self._docs.sort(key=sort_key, reverse=dirn == -1)
        return self

    def skip(self, n):
        self._skip = n
        return self

    def limit(self, n):
        self._limit = n
        return self

    def __aiter__(self):
        docs = self._docs[self._skip:]
        if self._limit:
            docs = docs[: self._limit]
        self._iter = iter(docs)
        return self

    async def __anext__(self):
        try:
            return next(self._iter)
        except StopIteration:
            raise StopAsyncIteration


class FakeCollection:
    def __init__(self):
        self.docs = []
        self.unique_keys = []

    async def create_index(self, keys, unique=False, **kwargs):
        fields = (keys,) if isinstance(keys, str) else tuple(k for k, _ in keys)
        if unique and fields not in self.unique_keys:
            self.unique_keys.append(fields)
        return "_".join(fields)

    def _violates_unique(self, doc):
        for fields in self.unique_keys:
            key = [_resolve(doc, f) for f in fields]
            for other in self.docs:
                if [_resolve(other, f) for f in fields] == key:
                    return True
        return False

    async def insert_one(self, doc):
        doc.setdefault("_id", ObjectId())
        if self._violates_unique(doc):
            raise DuplicateKeyError("E11000 duplicate key error", 11000)
        self.docs.append(copy.deepcopy(doc))
        return _Result(inserted_id=doc["_id"])

    async def find_one(self, query=None):
        for d in self.docs:
            if _matches(d, query or {}):
                return copy.deepcopy(d)
        return None

    def find(self, query=None):
        return FakeCursor([copy.deepcopy(d) for d in self.docs if _matches(d, query or {})])

    async def count_documents(self, query):
        return sum(1 for d in self.docs if _matches(d, query))

    async def distinct(self, field, query=None):
        out = []
        for d in self.docs:
            if _matches(d, query or {}):
                for v in _flatten(_resolve(d, field)):
                    if not isinstance(v, list) and v not in out:
                        out.append(v)
        return out

    async def update_one(self, query, update):
        for d in self.docs:
            if _matches(d, query):
                before = copy.deepcopy(d)
                _apply_update(d, update)
                return _Result(matched_count=1, modified_count=int(before != d))
        return _Result(matched_count=0, modified_count=0)

    async def delete_one(self, query):
        for i, d in enumerate(self.docs):
            if _matches(d, query):
                del self.docs[i]
                return _Result(deleted_count=1)
        return _Result(deleted_count=0)


class FakeDatabase:
    def __init__(self):
        self.collections = {}

    def __getitem__(self, name):
        return self.collections.setdefault(name, FakeCollection())


class FakeMongoClient:
    def __init__(self):
        self.databases = {}

    def __getitem__(self, name):
        return self.databases.setdefault(name, FakeDatabase())

    def close(self):
        pass


class FakeRedis:
    def __init__(self):
        self.values = {}
        self.ttls = {}

    async def get(self, key):
        return self.values.get(key)

    async def incr(self, key):
        self.values[key] = str(int(self.values.get(key, 0)) + 1)
        return int(self.values[key])

    async def expire(self, key, seconds):
        self.ttls[key] = seconds
        return True

    async def ttl(self, key):
        if key not in self.values:
            return -2
        return self.ttls.get(key, -1)

    async def delete(self, key):
        self.ttls.pop(key, None)
        return 1 if self.values.pop(key, None) is not None else 0

    async def aclose(self):
        pass


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def local_storage(tmp_path, monkeypatch):
    """Uploads go to a temp dir; S3 is never configured in tests."""
    upload_dir = tmp_path / "uploads"
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(upload_dir))
    monkeypatch.setattr(settings, "S3_BUCKET", None)
    monkeypatch.setattr(settings, "S3_ENDPOINT", None)
    monkeypatch.setattr(settings, "MINIO_ENDPOINT", None)
    return upload_dir


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch):
    redis = FakeRedis()
    monkeypatch.setattr(login_limiter, "_get_redis_client", lambda: redis)
    return redis


@pytest.fixture
async def db(monkeypatch):
    client = FakeMongoClient()
    monkeypatch.setattr(mongo, "_mongo_client", client)
    await mongo.init_db()
    return client[settings.MONGODB_DB]


@pytest.fixture
async def client(db):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


@pytest.fixture
def register(client):
    """Register a user through the API; returns id, token and auth headers."""
    counter = itertools.count(1)

    async def _register(role="candidate", **overrides):
        n = next(counter)
        payload = {
            "firstName": "Jane",
            "lastName": "Doe",
            "email": f"{role}{n}@acme.io",
            "password": PASSWORD,
            "role": role,
        }
        payload.update(overrides)
        r = await client.post("/auth/register", json=payload)
        assert r.status_code == 201, r.text
        data = r.json()["data"]
        return {
            "id": data["user"]["id"],
            "email": payload["email"],
            "token": data["token"],
            "refresh_token": data["refreshToken"],
            "headers": {"Authorization": f"Bearer {data['token']}"},
        }

    return _register


@pytest.fixture
def admin(client):
    """Admins cannot self-register; create one directly and log in."""

    async def _admin():
        user = await users_repo.create_user("Ada", "Admin", "root@acme.io", hash_password(PASSWORD), "admin")
        r = await client.post("/auth/login", json={"email": "root@acme.io", "password": PASSWORD})
        assert r.status_code == 200, r.text
        token = r.json()["data"]["token"]
        return {"id": user.id, "token": token, "headers": {"Authorization": f"Bearer {token}"}}

    return _admin


@pytest.fixture
def post_job(client):
    async def _post_job(employer, **overrides):
        payload = {
            "title": "Backend Engineer",
            "description": "Build and run the hiring APIs.",
            "location": "Remote",
            "type": "full-time",
            "category": "Engineering",
            "experienceLevel": "mid",
            "skills": ["Python", "MongoDB", "FastAPI"],
            "salary": {"min": 50000, "max": 80000, "currency": "EUR"},
        }
        payload.update(overrides)
        r = await client.post("/jobs", json=payload, headers=employer["headers"])
        assert r.status_code == 201, r.text
        return r.json()["data"]["job"]

    return _post_job


PERSONAL_INFO = (
    '{"firstName": "Jane", "lastName": "Doe", "email": "jane.doe@acme.io", "phone": "+1 555 010 2030"}'
)


def resume_file(name="cv.pdf", content=b"%PDF-1.4 resume", mimetype="application/pdf"):
    return ("resume", (name, content, mimetype))


@pytest.fixture
def apply(client):
    """Submit a multipart application; returns the raw response."""

    async def _apply(candidate, job_id, files=None, **fields):
        data = {"jobId": job_id, "personalInfo": PERSONAL_INFO}
        data.update(fields)
        if files is None:
            files = [resume_file()]
        return await client.post("/applications", data=data, files=files, headers=candidate["headers"])

    return _apply
