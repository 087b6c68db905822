"""Typed failures with stable machine-readable codes.

Every business-rule violation is raised as one of these. They subclass
HTTPException so FastAPI renders them directly as
``{"detail": {"code": ..., "message": ...}}`` with the matching status.
"""
from typing import Optional

from fastapi import HTTPException, status


class StudyGroupError(HTTPException):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "ERROR"
    message = "Request failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.message
        super().__init__(
            status_code=self.status_code,
            detail={"code": self.code, "message": self.message},
        )


# --- NotFound ---------------------------------------------------------------

class NotFoundError(StudyGroupError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    message = "Resource not found"


class GroupNotFound(NotFoundError):
    code = "GROUP_NOT_FOUND"
    message = "Group not found"


class RequestNotFound(NotFoundError):
    code = "REQUEST_NOT_FOUND"
    message = "Membership request not found"


class UserNotFound(NotFoundError):
    code = "USER_NOT_FOUND"
    message = "User not found"


class NoticeNotFound(NotFoundError):
    code = "NOTICE_NOT_FOUND"
    message = "Notice not found"


class MembershipNotFound(NotFoundError):
    code = "MEMBERSHIP_NOT_FOUND"
    message = "Active membership not found"


# --- Conflict ---------------------------------------------------------------

class ConflictError(StudyGroupError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"
    message = "Conflicting state"


class GroupFull(ConflictError):
    code = "GROUP_FULL"
    message = "Group has reached its member limit"


class AlreadyMember(ConflictError):
    code = "ALREADY_MEMBER"
    message = "User already belongs to an active group"


class AlreadyLeader(ConflictError):
    code = "ALREADY_LEADER"
    message = "User already leads an active group"


class NameTaken(ConflictError):
    code = "NAME_TAKEN"
    message = "Group name is already in use"


class DuplicatePendingRequest(ConflictError):
    code = "DUPLICATE_PENDING_REQUEST"
    message = "A pending request for this group already exists"


class RequestAlreadyProcessed(ConflictError):
    code = "REQUEST_ALREADY_PROCESSED"
    message = "Membership request was already processed"


class RequestExpired(ConflictError):
    code = "REQUEST_EXPIRED"
    message = "Membership request has expired"


class EmailTaken(ConflictError):
    code = "EMAIL_TAKEN"
    message = "Email is already registered"


class CapacityBelowMembers(ConflictError):
    code = "CAPACITY_BELOW_MEMBERS"
    message = "Member limit cannot be lower than the current member count"


class LeaderCannotLeave(ConflictError):
    code = "LEADER_CANNOT_LEAVE"
    message = "The leader cannot leave; disband the group instead"


# --- Forbidden --------------------------------------------------------------

class ForbiddenError(StudyGroupError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"
    message = "Not allowed"


class NotLeader(ForbiddenError):
    code = "NOT_LEADER"
    message = "Only the group leader may do this"


class NotAMember(ForbiddenError):
    code = "NOT_A_MEMBER"
    message = "Only active group members may do this"


class NotAuthor(ForbiddenError):
    code = "NOT_AUTHOR"
    message = "Only the author may modify this notice"


class SelfRequestToOwnGroup(ForbiddenError):
    code = "SELF_REQUEST_TO_OWN_GROUP"
    message = "The leader cannot request to join their own group"


class EmailNotWhitelisted(ForbiddenError):
    code = "EMAIL_NOT_WHITELISTED"
    message = "Email is not on the registration whitelist"


class NotVerified(ForbiddenError):
    code = "NOT_VERIFIED"
    message = "User account is not verified"


# --- ValidationFailed -------------------------------------------------------

class ValidationFailed(StudyGroupError):
    status_code = 422
    code = "VALIDATION_FAILED"
    message = "Invalid request payload"


class InvalidMessage(ValidationFailed):
    code = "INVALID_MESSAGE"
    message = "Message length is out of bounds"


class InvalidGroupName(ValidationFailed):
    code = "INVALID_GROUP_NAME"
    message = "Group name length is out of bounds"


class InvalidAction(ValidationFailed):
    code = "INVALID_ACTION"
    message = "Action must be approve or reject"


# --- Unauthenticated --------------------------------------------------------

class Unauthenticated(StudyGroupError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHENTICATED"
    message = "Authentication required"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message)
        self.headers = {"WWW-Authenticate": "Bearer"}


class InvalidCredential(Unauthenticated):
    code = "INVALID_CREDENTIAL"
    message = "Invalid or expired credentials"
