import pytest

from acid.raft_messages import (
    AppendEntriesArgs,
    AppendEntriesReply,
    Entry,
    EntryType,
    HardState,
    InstallSnapshotArgs,
    InstallSnapshotReply,
    RequestVoteArgs,
    RequestVoteReply,
    Snapshot,
    SnapshotMetadata,
)
from acid.serializer import SerializationError, Serializer


def _round_trip(obj):
    s = Serializer()
    obj.serialize(s)
    s.reset()
    result = type(obj).deserialize(s)
    assert s.to_bytes() == b""
    return result


def test_entry_wire_bytes():
    s = Serializer()
    Entry(index=1, term=1, data=b"x").serialize(s)
    s.reset()
    assert s.to_bytes() == b"\x02\x02\x00\x01x"


@pytest.mark.parametrize(
    "entry",
    [
        Entry(),
        Entry(index=5, term=3, type=EntryType.DUMMY, data=b"\x00\xffpayload"),
        Entry(index=-7, term=2**40, data=b""),
    ],
)
def test_entry_round_trip(entry):
    assert _round_trip(entry) == entry


def test_entry_unknown_type_rejected():
    s = Serializer()
    s.write_int64(1)
    s.write_int64(1)
    s.write_int32(9)
    s.write_string(b"")
    s.reset()
    with pytest.raises(SerializationError):
        Entry.deserialize(s)


def test_snapshot_empty_and_round_trip():
    assert Snapshot().empty()
    snap = Snapshot(data=b"state", metadata=SnapshotMetadata(index=4, term=2))
    assert not snap.empty()
    assert _round_trip(snap) == snap


def test_hard_state_round_trip():
    hs = HardState(term=3, vote=2, commit=10)
    assert _round_trip(hs) == hs


def test_truncated_data_raises():
    s = Serializer()
    HardState(term=3, vote=2, commit=10).serialize(s)
    s.reset()
    data = s.to_bytes()
    with pytest.raises(SerializationError):
        HardState.deserialize(Serializer(data[:-1]))


def test_request_vote_args():
    args = RequestVoteArgs(term=1, candidate_id=2, last_log_index=3, last_log_term=4)
    assert _round_trip(args) == args
    assert str(args) == "{ term = 1, candidateId = 2, lastLogIndex = 3, lastLogTerm = 4 }"


def test_request_vote_reply():
    reply = RequestVoteReply(term=5, leader_id=1, vote_granted=True)
    assert _round_trip(reply) == reply
    assert str(reply) == "{ term = 5, leaderId = 1, voteGranted = 1 }"


def test_append_entries_args():
    entries = [Entry(index=i, term=1, data=str(i).encode()) for i in range(1, 4)]
    args = AppendEntriesArgs(
        term=2, leader_id=1, prev_log_index=0, prev_log_term=0, entries=entries, leader_commit=1
    )
    back = _round_trip(args)
    assert back == args
    assert back.entries[2].data == b"3"
    assert str(args) == (
        "{ term = 2, leaderId = 1, prevLogIndex = 0, prevLogTerm = 0, "
        "entries size = 3, leaderCommit = 1 }"
    )


def test_append_entries_heartbeat_round_trip():
    args = AppendEntriesArgs(term=9, leader_id=3)
    assert _round_trip(args).entries == []


def test_append_entries_reply():
    reply = AppendEntriesReply(success=False, term=4, leader_id=2, conflict_term=3, conflict_index=7)
    assert _round_trip(reply) == reply
    assert str(reply) == (
        "{ success = 0, term = 4, leaderId = 2, conflictTerm = 3, conflictIndex = 7 }"
    )


def test_install_snapshot_args():
    args = InstallSnapshotArgs(
        term=6, leader_id=1, snapshot=Snapshot(data=b"db", metadata=SnapshotMetadata(10, 5))
    )
    assert _round_trip(args) == args
    assert str(args) == (
        "{ term = 6, leaderId = 1, snapshot.metadata.index = 10, snapshot.metadata.term = 5 }"
    )


def test_install_snapshot_reply():
    reply = InstallSnapshotReply(term=6, leader_id=1)
    assert _round_trip(reply) == reply
    assert str(reply) == "{ term = 6leaderId = 1 }"


def test_entries_list_via_serializer_spec():
    entries = [Entry(index=1, term=1, data=b"a"), Entry(index=2, term=1, data=b"b")]
    s = Serializer()
    s.write(entries, ("list", Entry))
    s.reset()
    assert s.read(("list", Entry)) == entries