from __future__ import annotations

from sqlalchemy import select, update

from app.models.contact import Contact
from app.services.sync.dispatcher import ContactChange, SyncContext


def _contact(id: str, external_id):
    return Contact(id=id, external_id=external_id)


# -- pure classification ------------------------------------------------------

def test_pre_insert_assigns_only_missing_ids(dispatcher) -> None:
    batch = [_contact("a", None), _contact("b", "150"), _contact("c", None)]

    assert dispatcher.pre_insert(batch) == 2
    first = [c.external_id for c in batch]
    assert batch[1].external_id == "150"
    assert all(0 <= int(v) <= 100 for v in (first[0], first[2]))

    # repeated call within the same batch changes nothing
    assert dispatcher.pre_insert(batch) == 0
    assert [c.external_id for c in batch] == first


def test_post_insert_enqueues_one_job_per_inbound_record(dispatcher, queue) -> None:
    batch = [
        _contact("a", "5"),
        _contact("b", "100"),
        _contact("c", "101"),
        _contact("d", None),
        _contact("e", "n/a"),
        _contact("f", "0"),
    ]

    ids = dispatcher.post_insert(batch, SyncContext())

    assert ids == ["5", "100", "0"]
    assert queue.inbound == ["5", "100", "0"]
    assert queue.outbound == []


def test_post_update_enqueues_when_id_moves_into_outbound_regime(dispatcher, queue) -> None:
    changes = [
        ContactChange(_contact("from-null", "150"), None),
        ContactChange(_contact("from-50", "150"), "50"),
        ContactChange(_contact("unchanged", "150"), "150"),
        ContactChange(_contact("to-inbound", "20"), "150"),
        ContactChange(_contact("garbage", "x"), "50"),
        ContactChange(_contact("outbound-move", "300"), "200"),
    ]

    ids = dispatcher.post_update(changes, SyncContext())

    assert ids == ["from-null", "from-50", "outbound-move"]
    assert queue.outbound == ids
    assert queue.inbound == []


def test_post_update_is_a_no_op_inside_a_sync_job(dispatcher, queue) -> None:
    changes = [ContactChange(_contact("a", "150"), "50")]

    assert dispatcher.post_update(changes, SyncContext(in_sync_job=True)) == []
    assert queue.outbound == []


# -- session hooks ------------------------------------------------------------

def test_insert_without_external_id_gets_one_and_queues_inbound(hooked_factory, queue) -> None:
    with hooked_factory() as db:
        db.add_all([Contact(first_name="Ann"), Contact(first_name="Bob", external_id="150")])
        db.commit()
        ann = db.execute(select(Contact).where(Contact.first_name == "Ann")).scalar_one()
        bob = db.execute(select(Contact).where(Contact.first_name == "Bob")).scalar_one()

    assert 0 <= int(ann.external_id) <= 100
    assert bob.external_id == "150"
    assert queue.inbound == [ann.external_id]
    assert queue.outbound == []


def test_jobs_are_queued_only_after_commit(hooked_factory, queue) -> None:
    with hooked_factory() as db:
        db.add(Contact(external_id="12"))
        db.flush()
        assert queue.inbound == []
        db.rollback()

    assert queue.inbound == []

    with hooked_factory() as db:
        db.add(Contact(external_id="12"))
        db.commit()

    assert queue.inbound == ["12"]


def test_update_into_outbound_regime_queues_one_push(hooked_factory, queue) -> None:
    with hooked_factory() as db:
        c = Contact(external_id="50", first_name="Cy")
        db.add(c)
        db.commit()
        queue.clear()

        c.external_id = "150"
        db.commit()
        assert queue.outbound == [c.id]
        queue.clear()

        # same value again: not a change
        c.external_id = "150"
        c.first_name = "Cyd"
        db.commit()
        assert queue.outbound == []


def test_id_changed_across_several_flushes_queues_one_push(hooked_factory, queue) -> None:
    with hooked_factory() as db:
        c = Contact(external_id="50")
        db.add(c)
        db.commit()
        queue.clear()

        c.external_id = "150"
        db.flush()
        c.external_id = "200"
        db.flush()
        db.commit()

    assert queue.outbound == [c.id]


def test_inserts_across_flushes_queue_one_pull_per_record(hooked_factory, queue) -> None:
    with hooked_factory() as db:
        first = Contact(external_id="12")
        db.add(first)
        db.flush()
        first.first_name = "Flo"
        db.add(Contact(external_id="12"))
        db.flush()
        db.commit()

    assert queue.inbound == ["12", "12"]


def test_released_savepoint_waits_for_outer_commit(hooked_factory, queue) -> None:
    with hooked_factory() as db:
        with db.begin_nested():
            db.add(Contact(external_id="12"))
        assert queue.inbound == []
        db.rollback()

    assert queue.inbound == []
    with hooked_factory() as db:
        assert db.execute(select(Contact)).first() is None

    with hooked_factory() as db:
        with db.begin_nested():
            db.add(Contact(external_id="12"))
        db.commit()

    assert queue.inbound == ["12"]


def test_savepoint_rollback_keeps_jobs_of_outer_transaction(hooked_factory, queue) -> None:
    with hooked_factory() as db:
        db.add(Contact(external_id="12"))
        db.flush()
        savepoint = db.begin_nested()
        db.add(Contact(external_id="13"))
        db.flush()
        savepoint.rollback()
        db.commit()

        assert [c.external_id for c in db.execute(select(Contact)).scalars()] == ["12"]

    assert queue.inbound == ["12"]


def test_bulk_update_statements_bypass_the_hooks(hooked_factory, queue) -> None:
    with hooked_factory() as db:
        c = Contact(external_id="50")
        db.add(c)
        db.commit()
        queue.clear()

        db.execute(update(Contact).where(Contact.id == c.id).values(external_id="150"))
        db.commit()

    assert queue.outbound == []


def test_update_after_reload_compares_against_stored_value(hooked_factory, queue) -> None:
    with hooked_factory() as db:
        c = Contact(external_id="150")
        db.add(c)
        db.commit()
        cid = c.id

    with hooked_factory() as db:
        c = db.get(Contact, cid)
        db.expire(c)
        c.external_id = "150"
        db.commit()

    assert queue.outbound == []


def test_update_inside_sync_job_session_is_ignored(hooked_factory, queue) -> None:
    with hooked_factory() as db:
        c = Contact(external_id="50")
        db.add(c)
        db.commit()
        cid = c.id
    queue.clear()

    with hooked_factory(info={"in_sync_job": True}) as db:
        c = db.get(Contact, cid)
        c.external_id = "150"
        db.commit()

    assert queue.outbound == []
