from dbkit import Column, Updater, new_updater
from tests.models import UserFields as F


def test_last_write_wins():
    updater = Updater().add(F.status, "active").add(F.status, "inactive")
    assert updater.params() == {"status": "inactive"}


def test_add_by_map_then_remove():
    updater = new_updater().add_by_map({F.status: "inactive", F.name: "bob", F.age: 40})
    updater.remove(F.name)
    assert updater.params() == {"status": "inactive", "age": 40}


def test_remove_missing_column_is_a_no_op():
    updater = Updater().add(F.age, 1)
    assert updater.remove(F.email) is updater
    assert updater.params() == {"age": 1}


def test_keys_are_column_names():
    updater = Updater().add(Column("age"), 1).add(F.age, 2)
    assert updater.params() == {"age": 2}
    assert len(updater) == 1


def test_none_is_a_value():
    assert Updater().add(F.name, None).params() == {"name": None}
