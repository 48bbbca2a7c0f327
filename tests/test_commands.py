"""
Command Tests — generated statements and save / delete / lookup operations
against a recording executor.
"""

import datetime
import uuid

import pytest

from lorm.faults import MultipleRecordsFault, RecordNotFoundFault
from lorm.models import commands
from lorm.models.entity import FieldSpec, compile_entity
from lorm.models.fields import AutoField, DateTimeField, IntegerField, TextField, UUIDField

NIL = uuid.UUID(int=0)


def users(dialect="sqlite"):
    return compile_entity("User", [
        FieldSpec("id", kind=UUIDField(), pk=True),
        FieldSpec("email", kind=TextField(), by=True),
        FieldSpec("count", kind=IntegerField(null=True), readonly=True),
        FieldSpec("tmp", kind=IntegerField(), transient=True),
        FieldSpec("created_at", kind=DateTimeField(), created_at=True),
        FieldSpec("updated_at", kind=DateTimeField(), updated_at=True),
    ], dialect=dialect)


def alt_users(dialect="sqlite"):
    return compile_entity("AltUser", [
        FieldSpec("id", kind=AutoField(), pk=True, readonly=True),
        FieldSpec("email", kind=TextField(), by=True),
        FieldSpec("count", kind=IntegerField(null=True), by=True),
        FieldSpec("created_at", kind=DateTimeField(), created_at=True, readonly=True),
        FieldSpec("updated_at", kind=DateTimeField(), updated_at=True),
    ], dialect=dialect)


def user_row(uid=None, email="a@b.c", count=None, ts="2024-01-01T00:00:00+00:00"):
    return {
        "id": str(uid or uuid.uuid4()),
        "email": email,
        "count": count,
        "created_at": ts,
        "updated_at": ts,
    }


class TestStatements:
    """Fixed SQL text and bind order per entity."""

    def test_insert(self):
        stmt = users().statements.insert
        assert stmt.sql == (
            'INSERT INTO "users" ("id","email","created_at","updated_at") VALUES ($1,$2,$3,$4) '
            'RETURNING "id","email","count","created_at","updated_at"'
        )
        assert stmt.binds == ("id", "email", "created_at", "updated_at")

    def test_insert_omits_readonly_pk(self):
        stmt = alt_users().statements.insert
        assert stmt.sql == (
            'INSERT INTO "alt_users" ("email","count","updated_at") VALUES ($1,$2,$3) '
            'RETURNING "id","email","count","created_at","updated_at"'
        )

    def test_update_numbers_pk_after_set_clause(self):
        stmt = users().statements.update
        assert stmt.sql == (
            'UPDATE "users" SET "id" = $1,"email" = $2,"created_at" = $3,"updated_at" = $4 '
            'WHERE "id" = $5 RETURNING "id","email","count","created_at","updated_at"'
        )
        assert stmt.binds == ("id", "email", "created_at", "updated_at", "id")

    def test_update_readonly_pk(self):
        stmt = alt_users().statements.update
        assert stmt.sql.startswith('UPDATE "alt_users" SET "email" = $1,"count" = $2,"updated_at" = $3 WHERE "id" = $4')

    def test_delete(self):
        assert users().statements.delete.sql == 'DELETE FROM "users" WHERE "id" = $1'

    def test_lookup(self):
        model = users()
        assert model.statements.lookups["email"].sql == (
            'SELECT "id","email","count","created_at","updated_at" FROM "users" WHERE "email" = $1'
        )
        assert model.statements.singles["email"].sql.endswith('WHERE "email" = $1 LIMIT 2')

    def test_mysql_uses_qmark(self):
        model = users("mysql")
        assert "VALUES (?,?,?,?)" in model.statements.insert.sql
        assert "WHERE `id` = ?" in model.statements.update.sql
        assert model.statements.delete.sql == "DELETE FROM `users` WHERE `id` = ?"

    def test_postgres_numbered(self):
        model = users("postgres")
        assert "VALUES ($1,$2,$3,$4)" in model.statements.insert.sql

    def test_no_writable_fields(self):
        model = compile_entity("Counter", [FieldSpec("id", kind=AutoField(), pk=True, readonly=True)], dialect="sqlite")
        assert model.statements.insert.sql == 'INSERT INTO "counters" DEFAULT VALUES RETURNING "id"'
        assert model.statements.update.sql == 'UPDATE "counters" SET "id" = "id" WHERE "id" = $1 RETURNING "id"'


class TestSave:
    """Insert-or-update decision, stamping and binding."""

    @pytest.mark.asyncio
    async def test_unset_pk_inserts(self, recorder):
        model = users()
        ex = recorder([[user_row()]])
        instance = model.factory(id=NIL, email="a@b.c", count=None, created_at=None, updated_at=None)

        await commands.save(ex, model, instance)

        op, sql, args = ex.calls[0]
        assert op == "fetch_row"
        assert sql.startswith('INSERT INTO "users"')
        assert uuid.UUID(args[0]) != NIL
        assert args[1] == "a@b.c"
        # created_at and updated_at share one generated value
        assert args[2] == args[3]
        assert datetime.datetime.fromisoformat(args[2]).tzinfo is not None

    @pytest.mark.asyncio
    async def test_original_instance_untouched(self, recorder):
        model = users()
        ex = recorder([[user_row()]])
        instance = model.factory(id=NIL, email="a@b.c", count=None, created_at=None, updated_at=None)
        await commands.save(ex, model, instance)
        assert instance.id == NIL
        assert instance.created_at is None

    @pytest.mark.asyncio
    async def test_set_pk_updates(self, recorder):
        model = users()
        uid = uuid.uuid4()
        created = datetime.datetime(2024, 1, 1, tzinfo=datetime.timezone.utc)
        ex = recorder([[user_row(uid)]])
        instance = model.factory(id=uid, email="new@b.c", count=3, created_at=created, updated_at=created)

        await commands.save(ex, model, instance)

        _, sql, args = ex.calls[0]
        assert sql.startswith('UPDATE "users" SET')
        assert args[0] == str(uid)
        assert args[1] == "new@b.c"
        assert args[2] == created.isoformat()
        assert args[3] != created.isoformat()
        assert args[4] == str(uid)

    @pytest.mark.asyncio
    async def test_returns_decoded_row(self, recorder):
        model = users()
        uid = uuid.uuid4()
        ex = recorder([[user_row(uid, count=7)]])
        instance = model.factory(id=NIL, email="a@b.c", count=None, created_at=None, updated_at=None)
        saved = await commands.save(ex, model, instance)
        assert saved.id == uid
        assert saved.count == 7

    @pytest.mark.asyncio
    async def test_readonly_pk_not_stamped(self, recorder):
        model = alt_users()
        row = {"id": 1, "email": "a", "count": 2, "created_at": "2024-01-01 00:00:00", "updated_at": "2024-01-01 00:00:00"}
        ex = recorder([[row]])
        instance = model.factory(id=None, email="a", count=2, created_at=None, updated_at=None)

        saved = await commands.save(ex, model, instance)

        _, sql, args = ex.calls[0]
        assert sql.startswith('INSERT INTO "alt_users" ("email","count","updated_at")')
        assert args[:2] == ["a", 2]
        assert len(args) == 3
        assert saved.id == 1

    @pytest.mark.asyncio
    async def test_readonly_created_at_not_stamped(self, recorder):
        model = alt_users()
        ex = recorder([[{"id": 1, "email": "a", "count": None, "created_at": "2024-01-01 00:00:00",
                         "updated_at": "2024-01-01 00:00:00"}]])
        instance = model.factory(id=None, email="a", count=None, created_at=None, updated_at=None)
        await commands.save(ex, model, instance)
        assert "created_at" not in ex.calls[0][1].split("RETURNING")[0]

    @pytest.mark.asyncio
    async def test_custom_rules(self, recorder):
        issued = []

        def next_id():
            issued.append(len(issued) + 100)
            return issued[-1]

        model = compile_entity("Ticket", [
            FieldSpec("id", kind=IntegerField(), pk=True, new=next_id, is_unset=lambda v: v < 0),
            FieldSpec("title", kind=TextField(), by=True),
        ], dialect="sqlite")
        ex = recorder([[{"id": 100, "title": "x"}], [{"id": 0, "title": "y"}]])

        await commands.save(ex, model, model.factory(id=-1, title="x"))
        await commands.save(ex, model, model.factory(id=0, title="y"))

        assert ex.calls[0][1].startswith("INSERT")
        assert ex.calls[0][2] == [100, "x"]
        assert ex.calls[1][1].startswith("UPDATE")
        assert issued == [100]


class TestDelete:

    @pytest.mark.asyncio
    async def test_delete_by_pk(self, recorder):
        model = users()
        uid = uuid.uuid4()
        ex = recorder()
        await commands.delete(ex, model, model.factory(id=uid))
        assert ex.calls == [("execute", 'DELETE FROM "users" WHERE "id" = $1', [str(uid)])]


class TestLookups:

    @pytest.mark.asyncio
    async def test_by_returns_single(self, recorder):
        model = users()
        uid = uuid.uuid4()
        ex = recorder([[user_row(uid)]])
        found = await commands.by(ex, model, "id", uid)
        assert found.id == uid
        op, sql, args = ex.calls[0]
        assert sql.endswith('WHERE "id" = $1 LIMIT 2')
        assert args == [str(uid)]

    @pytest.mark.asyncio
    async def test_by_not_found(self, recorder):
        with pytest.raises(RecordNotFoundFault):
            await commands.by(recorder([[]]), users(), "email", "nobody")

    @pytest.mark.asyncio
    async def test_by_duplicates(self, recorder):
        ex = recorder([[user_row(email="x"), user_row(email="x")]])
        with pytest.raises(MultipleRecordsFault):
            await commands.by(ex, users(), "email", "x")

    @pytest.mark.asyncio
    async def test_by_non_lookup_field(self, recorder):
        with pytest.raises(AttributeError):
            await commands.by(recorder(), users(), "count", 1)

    @pytest.mark.asyncio
    async def test_with_returns_all(self, recorder):
        ex = recorder([[user_row(), user_row()]])
        found = await commands.with_(ex, users(), "email", "a@b.c")
        assert len(found) == 2
        assert not ex.calls[0][1].endswith("LIMIT 2")

    @pytest.mark.asyncio
    async def test_with_empty(self, recorder):
        assert await commands.with_(recorder(), users(), "email", "x") == []


class TestRelated:

    @pytest.mark.asyncio
    async def test_follow_entity_target(self, recorder):
        target = users()
        posts = compile_entity("Post", [
            FieldSpec("id", kind=UUIDField(), pk=True),
            FieldSpec("user_id", kind=UUIDField(), fk=target),
        ], dialect="sqlite")
        uid = uuid.uuid4()
        ex = recorder([[user_row(uid)]])
        post = posts.factory(id=uuid.uuid4(), user_id=uid)

        author = await commands.get_related(ex, posts, post, "user")

        assert author.id == uid
        _, sql, args = ex.calls[0]
        assert sql == 'SELECT "id","email","count","created_at","updated_at" FROM "users" WHERE "id" = $1'
        assert args == [str(uid)]

    @pytest.mark.asyncio
    async def test_missing_target_row(self, recorder):
        target = users()
        posts = compile_entity("Post", [
            FieldSpec("id", kind=UUIDField(), pk=True),
            FieldSpec("user_id", kind=UUIDField(), fk=target),
        ], dialect="sqlite")
        post = posts.factory(id=uuid.uuid4(), user_id=uuid.uuid4())
        assert await commands.get_related(recorder(), posts, post, "user") is None

    @pytest.mark.asyncio
    async def test_unknown_relation(self, recorder):
        with pytest.raises(AttributeError):
            await commands.get_related(recorder(), users(), object(), "author")
