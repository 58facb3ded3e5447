"""Raft log entries, snapshots, persistent state and the RPC messages between peers."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from acid.serializer import SerializationError, Serializer


class EntryType(enum.IntEnum):
    NORMAL = 0
    # Log indexes start at 1, so slot 0 holds a placeholder entry.
    DUMMY = 1


class StorageError(enum.IntEnum):
    SUCCEED = 0
    COMPACTED = -1
    SNAP_OUT_OF_DATE = -2
    UNAVAILABLE = 3
    SNAPSHOT_TEMPORARILY_UNAVAILABLE = -4


@dataclass
class Entry:
    """One log entry; ``data`` is an opaque payload owned by the application."""

    index: int = 0
    term: int = 0
    type: EntryType = EntryType.NORMAL
    data: bytes = b""

    def serialize(self, serializer: Serializer) -> None:
        serializer.write_int64(self.index)
        serializer.write_int64(self.term)
        serializer.write_int32(int(self.type))
        serializer.write_string(self.data)

    @classmethod
    def deserialize(cls, serializer: Serializer) -> Entry:
        index = serializer.read_int64()
        term = serializer.read_int64()
        raw_type = serializer.read_int32()
        try:
            entry_type = EntryType(raw_type)
        except ValueError:
            raise SerializationError(f"unknown entry type {raw_type}") from None
        data = serializer.read("bytes")
        return cls(index=index, term=term, type=entry_type, data=data)


@dataclass
class SnapshotMetadata:
    """Index and term of the last entry a snapshot covers."""

    index: int = 0
    term: int = 0

    def serialize(self, serializer: Serializer) -> None:
        serializer.write_int64(self.index)
        serializer.write_int64(self.term)

    @classmethod
    def deserialize(cls, serializer: Serializer) -> SnapshotMetadata:
        index = serializer.read_int64()
        return cls(index=index, term=serializer.read_int64())


@dataclass
class Snapshot:
    """The application's full serialized state at some point of the log."""

    data: bytes = b""
    metadata: SnapshotMetadata = field(default_factory=SnapshotMetadata)

    def empty(self) -> bool:
        return self.metadata.index == 0

    def serialize(self, serializer: Serializer) -> None:
        serializer.write_string(self.data)
        self.metadata.serialize(serializer)

    @classmethod
    def deserialize(cls, serializer: Serializer) -> Snapshot:
        data = serializer.read("bytes")
        return cls(data=data, metadata=SnapshotMetadata.deserialize(serializer))


@dataclass
class HardState:
    """State a raft node must persist: current term, vote and commit index."""

    term: int = 0
    vote: int = 0
    commit: int = 0

    def serialize(self, serializer: Serializer) -> None:
        serializer.write_int64(self.term)
        serializer.write_int64(self.vote)
        serializer.write_int64(self.commit)

    @classmethod
    def deserialize(cls, serializer: Serializer) -> HardState:
        term = serializer.read_int64()
        vote = serializer.read_int64()
        return cls(term=term, vote=vote, commit=serializer.read_int64())


@dataclass
class RequestVoteArgs:
    """Arguments of a RequestVote call from a candidate."""

    term: int = 0
    candidate_id: int = 0
    last_log_index: int = 0
    last_log_term: int = 0

    def serialize(self, serializer: Serializer) -> None:
        serializer.write_int64(self.term)
        serializer.write_int64(self.candidate_id)
        serializer.write_int64(self.last_log_index)
        serializer.write_int64(self.last_log_term)

    @classmethod
    def deserialize(cls, serializer: Serializer) -> RequestVoteArgs:
        term = serializer.read_int64()
        candidate_id = serializer.read_int64()
        last_log_index = serializer.read_int64()
        last_log_term = serializer.read_int64()
        return cls(term, candidate_id, last_log_index, last_log_term)

    def __str__(self) -> str:
        return (
            f"{{ term = {self.term}, candidateId = {self.candidate_id}, "
            f"lastLogIndex = {self.last_log_index}, lastLogTerm = {self.last_log_term} }}"
        )


@dataclass
class RequestVoteReply:
    """Reply to a RequestVote call."""

    term: int = 0
    leader_id: int = 0
    vote_granted: bool = False

    def serialize(self, serializer: Serializer) -> None:
        serializer.write_int64(self.term)
        serializer.write_int64(self.leader_id)
        serializer.write_bool(self.vote_granted)

    @classmethod
    def deserialize(cls, serializer: Serializer) -> RequestVoteReply:
        term = serializer.read_int64()
        leader_id = serializer.read_int64()
        return cls(term, leader_id, serializer.read_bool())

    def __str__(self) -> str:
        return (
            f"{{ term = {self.term}, leaderId = {self.leader_id}, "
            f"voteGranted = {int(self.vote_granted)} }}"
        )


@dataclass
class AppendEntriesArgs:
    """Arguments of an AppendEntries call; no entries means a heartbeat."""

    term: int = 0
    leader_id: int = 0
    prev_log_index: int = 0
    prev_log_term: int = 0
    entries: list[Entry] = field(default_factory=list)
    leader_commit: int = 0

    def serialize(self, serializer: Serializer) -> None:
        serializer.write_int64(self.term)
        serializer.write_int64(self.leader_id)
        serializer.write_int64(self.prev_log_index)
        serializer.write_int64(self.prev_log_term)
        serializer.write(self.entries, ("list", Entry))
        serializer.write_int64(self.leader_commit)

    @classmethod
    def deserialize(cls, serializer: Serializer) -> AppendEntriesArgs:
        term = serializer.read_int64()
        leader_id = serializer.read_int64()
        prev_log_index = serializer.read_int64()
        prev_log_term = serializer.read_int64()
        entries = serializer.read(("list", Entry))
        leader_commit = serializer.read_int64()
        return cls(term, leader_id, prev_log_index, prev_log_term, entries, leader_commit)

    def __str__(self) -> str:
        return (
            f"{{ term = {self.term}, leaderId = {self.leader_id}, "
            f"prevLogIndex = {self.prev_log_index}, prevLogTerm = {self.prev_log_term}, "
            f"entries size = {len(self.entries)}, leaderCommit = {self.leader_commit} }}"
        )


@dataclass
class AppendEntriesReply:
    """Reply to an AppendEntries call."""

    success: bool = False
    term: int = 0
    leader_id: int = 0
    conflict_term: int = 0
    conflict_index: int = 0

    def serialize(self, serializer: Serializer) -> None:
        serializer.write_bool(self.success)
        serializer.write_int64(self.term)
        serializer.write_int64(self.leader_id)
        serializer.write_int64(self.conflict_term)
        serializer.write_int64(self.conflict_index)

    @classmethod
    def deserialize(cls, serializer: Serializer) -> AppendEntriesReply:
        success = serializer.read_bool()
        term = serializer.read_int64()
        leader_id = serializer.read_int64()
        conflict_term = serializer.read_int64()
        conflict_index = serializer.read_int64()
        return cls(success, term, leader_id, conflict_term, conflict_index)

    def __str__(self) -> str:
        return (
            f"{{ success = {int(self.success)}, term = {self.term}, "
            f"leaderId = {self.leader_id}, conflictTerm = {self.conflict_term}, "
            f"conflictIndex = {self.conflict_index} }}"
        )


@dataclass
class InstallSnapshotArgs:
    """Arguments of an InstallSnapshot call from the leader."""

    term: int = 0
    leader_id: int = 0
    snapshot: Snapshot = field(default_factory=Snapshot)

    def serialize(self, serializer: Serializer) -> None:
        serializer.write_int64(self.term)
        serializer.write_int64(self.leader_id)
        self.snapshot.serialize(serializer)

    @classmethod
    def deserialize(cls, serializer: Serializer) -> InstallSnapshotArgs:
        term = serializer.read_int64()
        leader_id = serializer.read_int64()
        return cls(term, leader_id, Snapshot.deserialize(serializer))

    def __str__(self) -> str:
        return (
            f"{{ term = {self.term}, leaderId = {self.leader_id}, "
            f"snapshot.metadata.index = {self.snapshot.metadata.index}, "
            f"snapshot.metadata.term = {self.snapshot.metadata.term} }}"
        )


@dataclass
class InstallSnapshotReply:
    """Reply to an InstallSnapshot call."""

    term: int = 0
    leader_id: int = 0

    def serialize(self, serializer: Serializer) -> None:
        serializer.write_int64(self.term)
        serializer.write_int64(self.leader_id)

    @classmethod
    def deserialize(cls, serializer: Serializer) -> InstallSnapshotReply:
        term = serializer.read_int64()
        return cls(term, serializer.read_int64())

    def __str__(self) -> str:
        return f"{{ term = {self.term}leaderId = {self.leader_id} }}"