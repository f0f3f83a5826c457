"""
Entity declarations: which fields each entity exposes to clients and how
each entity is stored.

One FilterConfig declaration and one CollectionSpec per entity replaces
the per-service config literals and repository subclasses.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Any, Mapping

from entity_query.domain.common.ports import CollectionSpec
from entity_query.domain.filtering.registry import FilterConfigRegistry

_TIMESTAMPS = {
    "createdAt": {"type": "date"},
    "updatedAt": {"type": "date"},
}

APPLICANT = "applicant"
ADMIN_APPLICANT = "admin-applicant"
JOB_CATEGORY = "job-category"
SKILL = "skill"
EDUCATION = "education"
WORK_HISTORY = "work-history"
JOB_APPLICATION = "job-application"
NOTIFICATION = "notification"


FILTER_DECLARATIONS: Mapping[str, Mapping[str, Any]] = MappingProxyType({
    APPLICANT: {
        "allowedFields": {
            "name": {"type": "string"},
            "email": {"type": "string"},
            "phone": {"type": "string"},
            "address": {"type": "string"},
            "addressProvinceName": {"type": "string"},
            "country": {"type": "string", "operators": ["equals"]},
            "city": {"type": "string"},
            "isPremium": {"type": "boolean", "operators": ["equals"]},
            "emailVerified": {"type": "boolean", "operators": ["equals"]},
            "isActive": {"type": "boolean", "operators": ["equals", "in"]},
            **_TIMESTAMPS,
        },
        "defaultFilter": {"isActive": True},
        "defaultSort": {"createdAt": -1},
    },
    ADMIN_APPLICANT: {
        "allowedFields": {
            "name": {"type": "string"},
            "email": {"type": "string"},
            "description": {"type": "string", "sortable": False},
            "emailVerified": {"type": "boolean", "operators": ["equals"]},
            "isActive": {"type": "boolean", "operators": ["equals"]},
            **_TIMESTAMPS,
        },
        "defaultFilter": {"isActive": True},
        "defaultSort": {"createdAt": -1},
    },
    JOB_CATEGORY: {
        "allowedFields": {
            "name": {"type": "string"},
            "slug": {"type": "string", "operators": ["equals"]},
            "description": {"type": "string", "sortable": False},
            "isActive": {"type": "boolean", "operators": ["equals"]},
            **_TIMESTAMPS,
        },
        "defaultFilter": {},
        "defaultSort": {"createdAt": -1},
    },
    SKILL: {
        "allowedFields": {
            "name": {"type": "string"},
            "jobCategoryId": {"type": "string", "operators": ["equals"]},
            "description": {"type": "string", "sortable": False},
            "createdBy": {"type": "string", "operators": ["equals"]},
            "isActive": {"type": "boolean", "operators": ["equals"]},
            **_TIMESTAMPS,
        },
        "defaultFilter": {"isActive": True},
        "defaultSort": {"createdAt": -1},
    },
    EDUCATION: {
        "allowedFields": {
            "applicantId": {"type": "string", "operators": ["equals"]},
            "levelStudy": {"type": "string", "operators": ["equals"]},
            "major": {"type": "string"},
            "schoolName": {"type": "string"},
            "gpa": {"type": "number"},
            "startDate": {"type": "date"},
            "endDate": {"type": "date"},
            **_TIMESTAMPS,
        },
        "defaultFilter": {},
        "defaultSort": {"createdAt": -1},
    },
    WORK_HISTORY: {
        "allowedFields": {
            "applicantId": {"type": "string", "operators": ["equals"]},
            "title": {"type": "string"},
            "companyId": {"type": "string", "operators": ["equals"]},
            "description": {"type": "string", "sortable": False},
            "startDate": {"type": "date"},
            "endDate": {"type": "date"},
            **_TIMESTAMPS,
        },
        "defaultFilter": {},
        "defaultSort": {"createdAt": -1},
    },
    JOB_APPLICATION: {
        "allowedFields": {
            "applicantId": {"type": "string", "operators": ["equals"]},
            "jobId": {"type": "string", "operators": ["equals"]},
            "status": {"type": "string", "operators": ["equals", "in"]},
            "appliedAt": {"type": "date"},
            **_TIMESTAMPS,
        },
        "defaultFilter": {},
        "defaultSort": {"createdAt": -1},
    },
    NOTIFICATION: {
        "allowedFields": {
            "recipientId": {"type": "string", "operators": ["equals"]},
            "recipientType": {"type": "string", "operators": ["equals", "in"]},
            "type": {"type": "string", "operators": ["equals", "in"]},
            "priority": {"type": "string", "operators": ["equals", "in"]},
            "title": {"type": "string"},
            "isRead": {"type": "boolean"},
            "readAt": {"type": "date"},
            **_TIMESTAMPS,
        },
        "defaultFilter": {},
        "defaultSort": {"createdAt": -1},
    },
})


def _date_fields(entity: str) -> tuple[str, ...]:
    fields = FILTER_DECLARATIONS[entity]["allowedFields"]
    return tuple(name for name, meta in fields.items() if meta.get("type") == "date")


COLLECTIONS: Mapping[str, CollectionSpec] = MappingProxyType({
    APPLICANT: CollectionSpec(
        name="applicants",
        unique_fields=("email",),
        soft_delete_field="isActive",
        date_fields=_date_fields(APPLICANT),
    ),
    ADMIN_APPLICANT: CollectionSpec(
        name="admin-applicants",
        unique_fields=("email",),
        soft_delete_field="isActive",
        date_fields=_date_fields(ADMIN_APPLICANT),
    ),
    JOB_CATEGORY: CollectionSpec(
        name="job-categories",
        unique_fields=("slug",),
        soft_delete_field="isActive",
        date_fields=_date_fields(JOB_CATEGORY),
    ),
    SKILL: CollectionSpec(
        name="skills",
        unique_fields=("name",),
        soft_delete_field="isActive",
        date_fields=_date_fields(SKILL),
    ),
    EDUCATION: CollectionSpec(name="educations", date_fields=_date_fields(EDUCATION)),
    WORK_HISTORY: CollectionSpec(name="work-histories", date_fields=_date_fields(WORK_HISTORY)),
    JOB_APPLICATION: CollectionSpec(name="job-applications", date_fields=_date_fields(JOB_APPLICATION)),
    NOTIFICATION: CollectionSpec(
        name="notifications",
        unique_fields=("notificationId",),
        date_fields=_date_fields(NOTIFICATION),
    ),
})


def build_entity_registry(
    *,
    default_limit: int = 20,
    max_limit: int = 100,
    declarations: Mapping[str, Mapping[str, Any]] = FILTER_DECLARATIONS,
) -> FilterConfigRegistry:
    """Build and seal the registry for every declared entity.

    ``default_limit`` / ``max_limit`` apply to declarations that do not set
    their own ``defaultLimit`` / ``maxLimit``.
    """
    registry = FilterConfigRegistry()
    for entity, declaration in declarations.items():
        merged = {"defaultLimit": default_limit, "maxLimit": max_limit, **declaration}
        registry.register_declaration(entity, merged)
    return registry.seal()
