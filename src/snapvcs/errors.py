"""Exceptions raised by SnapVCS operations.

Every expected, locally-detected failure derives from SnapVCSError and
carries the short message shown to the user. Merge conflicts are not
errors; they are reported through MergeResult.
"""


class SnapVCSError(Exception):
    """Base class for all expected SnapVCS failures."""


# Repository

class NotARepositoryError(SnapVCSError):
    """Raised when no .snapvcs directory exists in the workspace."""

    def __init__(self, workspace_root: object) -> None:
        super().__init__(f"Not in an initialized SnapVCS directory: {workspace_root}")


class RepositoryExistsError(SnapVCSError):
    """Raised by init when a repository already exists."""

    def __init__(self) -> None:
        super().__init__(
            "A SnapVCS version-control system already exists in the current directory."
        )


# Staging

class StagingError(SnapVCSError):
    """Raised when a path cannot be staged at all."""


class WorkingFileNotFoundError(StagingError):
    """Raised when staging a file that is absent from the working tree."""

    def __init__(self, filename: str) -> None:
        super().__init__("File does not exist.")
        self.filename = filename


class NothingToRemoveError(StagingError):
    """Raised when rm targets a file that is neither staged nor tracked."""

    def __init__(self, filename: str) -> None:
        super().__init__("No reason to remove the file.")
        self.filename = filename


# Commit

class EmptyMessageError(SnapVCSError):
    def __init__(self) -> None:
        super().__init__("Please enter a commit message.")


class NothingStagedError(SnapVCSError):
    def __init__(self) -> None:
        super().__init__("No changes added to the commit.")


class CommitNotFoundError(SnapVCSError):
    """Raised when a commit id (full or abbreviated) resolves to nothing."""

    def __init__(self, commit_id: str = "", message: str = "No commit with that id exists.") -> None:
        super().__init__(message)
        self.commit_id = commit_id


# Branches

class BranchExistsError(SnapVCSError):
    def __init__(self, name: str) -> None:
        super().__init__("A branch with that name already exists.")
        self.name = name


class BranchNotFoundError(SnapVCSError):
    def __init__(self, name: str, message: str = "A branch with that name does not exist.") -> None:
        super().__init__(message)
        self.name = name


class InvalidBranchNameError(SnapVCSError):
    """Raised when a name cannot be stored as a branch."""

    def __init__(self, name: str, message: str = "That is not a valid branch name.") -> None:
        super().__init__(message)
        self.name = name


class CurrentBranchError(SnapVCSError):
    """Raised when an operation is not allowed on the checked-out branch."""


# Working tree

class UncommittedChangesError(SnapVCSError):
    """Raised when a tracked file differs from its committed version."""

    def __init__(self, filename: str) -> None:
        super().__init__(
            "There is a tracked file with uncommitted changes; "
            "commit it or check it out first."
        )
        self.filename = filename


class UntrackedFileConflictError(SnapVCSError):
    """Raised when a restore would overwrite a file that is not tracked."""

    def __init__(self, filename: str) -> None:
        super().__init__(
            "There is an untracked file in the way; delete it, or add and commit it first."
        )
        self.filename = filename


class FileNotInCommitError(SnapVCSError):
    def __init__(self, filename: str) -> None:
        super().__init__("File does not exist in that commit.")
        self.filename = filename


# Merge

class MergeError(SnapVCSError):
    """Base class for merge preconditions that stop a merge."""


class DirtyStageError(MergeError):
    def __init__(self) -> None:
        super().__init__("You have uncommitted changes.")


class SelfMergeError(MergeError):
    def __init__(self) -> None:
        super().__init__("Cannot merge a branch with itself.")


class AlreadyAncestorError(MergeError):
    def __init__(self) -> None:
        super().__init__("Given branch is an ancestor of the current branch.")


class FastForwardableError(MergeError):
    """Raised when the current tip is an ancestor of the other tip.

    No merge commit is needed; the caller decides whether to fast-forward
    to ``target``.
    """

    def __init__(self, target: str) -> None:
        super().__init__("Current branch can be fast-forwarded.")
        self.target = target


class NoCommonAncestorError(MergeError):
    def __init__(self) -> None:
        super().__init__("The two histories share no common ancestor.")


# Remotes

class RemoteError(SnapVCSError):
    """Base class for remote synchronization failures."""


class RemoteExistsError(RemoteError):
    def __init__(self, name: str) -> None:
        super().__init__("A remote with that name already exists.")
        self.name = name


class RemoteNotFoundError(RemoteError):
    def __init__(self, name: str) -> None:
        super().__init__("A remote with that name does not exist.")
        self.name = name


class RemoteDirectoryNotFoundError(RemoteError):
    def __init__(self) -> None:
        super().__init__("Remote directory not found.")


class RemoteBranchNotFoundError(RemoteError):
    def __init__(self, branch: str) -> None:
        super().__init__("That remote does not have that branch.")
        self.branch = branch


class PushRejectedError(RemoteError):
    def __init__(self) -> None:
        super().__init__("Please pull down remote changes before pushing.")
