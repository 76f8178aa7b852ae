"""WHOOP API v2 endpoints."""

from whoop_cli.models.whoop import DataType

ENDPOINTS: dict[DataType, str] = {
    DataType.PROFILE: "/v2/user/profile/basic",
    DataType.BODY: "/v2/user/measurement/body",
    DataType.SLEEP: "/v2/activity/sleep",
    DataType.RECOVERY: "/v2/recovery",
    DataType.WORKOUT: "/v2/activity/workout",
    DataType.CYCLE: "/v2/cycle",
}

DEFAULT_PAGE_LIMIT = 25
