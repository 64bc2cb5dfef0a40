"""
NetSight user-management mock data.
Role-distributed user profiles, role permissions, and admin audit trail.
"""

import random
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence, Tuple

from models import AuditLog, UserProfile

FIRST_NAMES = [
    "John", "Jane", "Michael", "Sarah", "David", "Emily", "Robert", "Lisa", "William", "Jennifer",
    "James", "Mary", "Christopher", "Patricia", "Daniel", "Linda", "Matthew", "Elizabeth", "Anthony", "Barbara",
]
LAST_NAMES = [
    "Smith", "Johnson", "Williams", "Brown", "Jones", "Garcia", "Miller", "Davis", "Rodriguez", "Martinez",
    "Hernandez", "Lopez", "Gonzalez", "Wilson", "Anderson", "Thomas", "Taylor", "Moore", "Jackson", "Martin",
]
COMPANIES = [
    "TechCorp", "DataSolutions", "CloudSystems", "NetworkPro", "SecureIT",
    "MonitorMax", "InfraTech", "SystemGuard", "NetWatch", "CyberShield",
]
CITIES = [
    ("New York", "NY"), ("Los Angeles", "CA"), ("Chicago", "IL"), ("Houston", "TX"), ("Phoenix", "AZ"),
    ("Philadelphia", "PA"), ("San Antonio", "TX"), ("San Diego", "CA"), ("Dallas", "TX"), ("San Jose", "CA"),
]
MEMBERSHIP_TYPES = ["basic", "premium", "enterprise"]
USER_ROLES = ["client", "manager", "localAdmin", "developer"]
USER_STATUSES = ["active", "disabled", "suspended", "deleted"]

ROLE_DISTRIBUTION = [("client", 0.60), ("manager", 0.25), ("localAdmin", 0.13)]
ROLE_ID_PREFIX = {"client": "client", "manager": "manager", "localAdmin": "localadmin", "developer": "developer"}

AUDIT_ACTIONS = [
    "user_created",
    "user_updated",
    "user_deleted",
    "status_changed",
    "membership_updated",
    "permissions_modified",
    "password_reset",
    "login_attempt",
    "profile_viewed",
    "billing_updated",
]

BASE_PERMISSIONS = ["read_dashboard", "read_alerts"]
ROLE_PERMISSIONS = {
    "client": ["read_own_data", "update_own_profile", "read_reports"],
    "manager": ["read_team_data", "manage_team_users", "read_analytics", "export_reports"],
    "localAdmin": ["manage_organization_users", "read_organization_data", "configure_organization", "manage_billing"],
}


def permissions_for(role: str) -> List[str]:
    if role == "developer":
        return ["*"]
    return BASE_PERMISSIONS + ROLE_PERMISSIONS.get(role, [])


def _random_date(rng: random.Random, start: datetime, end: datetime) -> str:
    span = max(0.0, (end - start).total_seconds())
    return (start + timedelta(seconds=rng.random() * span)).isoformat()


def _random_ip(rng: random.Random) -> str:
    return ".".join(str(rng.randrange(255)) for _ in range(4))


def _generate_user(rng: random.Random, user_id: str, role: str) -> UserProfile:
    first = rng.choice(FIRST_NAMES)
    last = rng.choice(LAST_NAMES)
    now = datetime.now(timezone.utc)

    p = rng.random()
    status = "active" if p <= 0.8 else "disabled" if p <= 0.95 else "suspended"

    city, state = rng.choice(CITIES)
    registered = _random_date(rng, datetime(2020, 1, 1, tzinfo=timezone.utc), now)
    last_login = _random_date(rng, datetime.fromisoformat(registered), now) if rng.random() > 0.3 else None
    last_activity = _random_date(rng, datetime.fromisoformat(last_login), now) if last_login else None

    return UserProfile(
        id=user_id,
        email=f"{first.lower()}.{last.lower()}@{rng.choice(COMPANIES).lower()}.com",
        first_name=first,
        last_name=last,
        role=role,
        status=status,
        membership_type=rng.choice(MEMBERSHIP_TYPES),
        phone=f"+1-{rng.randrange(100, 1000)}-{rng.randrange(100, 1000)}-{rng.randrange(1000, 10000)}",
        address={
            "street": f"{rng.randrange(1, 10000)} {rng.choice(['Main', 'Oak', 'Pine', 'Elm', 'Maple'])} St",
            "city": city,
            "state": state,
            "country": "USA",
            "zip_code": str(rng.randrange(10000, 100000)),
        },
        organization_id=None if role == "developer" else f"org-{rng.randrange(10) + 1}",
        team_ids=[f"team-{i + 1}" for i in range(rng.randrange(3) + 1)],
        permissions=permissions_for(role),
        registration_date=registered,
        last_login=last_login,
        last_activity=last_activity,
        usage_metrics={
            "data_consumption": rng.randrange(1000) + 100,
            "monitored_entities": rng.randrange(500) + 10,
            "uptime_percentage": 95 + rng.random() * 5,
            "api_calls": rng.randrange(100000) + 1000,
        },
        communication_preferences={
            "email_notifications": rng.random() > 0.2,
            "sms_notifications": rng.random() > 0.7,
            "marketing_emails": rng.random() > 0.5,
            "security_alerts": rng.random() > 0.1,
        },
        billing_info=None if role == "developer" else {
            "subscription_status": rng.choice(["active", "past_due", "canceled", "trial"]),
            "next_billing_date": _random_date(rng, now, now + timedelta(days=90)),
            "subscription_plan": f"{rng.choice(MEMBERSHIP_TYPES)}-monthly",
        },
        api_keys=[f"api-key-{user_id}-{i}" for i in range(rng.randrange(3) + 1)],
        session_info={
            "current_sessions": rng.randrange(3) + 1,
            "last_ip_address": _random_ip(rng),
            "device_info": rng.choice(["Chrome/Windows", "Safari/macOS", "Firefox/Linux", "Edge/Windows"]),
        },
    )


def generate_mock_users(count: int = 100, rng: Optional[random.Random] = None) -> List[UserProfile]:
    """Users split 60/25/13 between client/manager/localAdmin; the remainder are developers."""
    rng = rng if rng is not None else random.Random()
    counts = {role: int(count * share) for role, share in ROLE_DISTRIBUTION}
    counts["developer"] = count - sum(counts.values())
    users = []
    for role in USER_ROLES:
        for i in range(counts[role]):
            users.append(_generate_user(rng, f"{ROLE_ID_PREFIX[role]}-{i + 1}", role))
    return users


def _action_details(action: str) -> dict:
    if action == "status_changed":
        return {"from": "active", "to": "suspended", "reason": "Policy violation"}
    if action == "membership_updated":
        return {"from": "basic", "to": "premium", "effective_date": datetime.now(timezone.utc).isoformat()}
    if action == "permissions_modified":
        return {"added": ["read_analytics"], "removed": ["manage_billing"]}
    return {}


def generate_mock_audit_logs(
    users: Sequence[UserProfile],
    count: int = 50,
    rng: Optional[random.Random] = None,
) -> List[AuditLog]:
    """Admin actions over the last 30 days, newest first."""
    rng = rng if rng is not None else random.Random()
    if not users:
        return []
    admins = [u for u in users if u.role in ("developer", "localAdmin")] or list(users)
    now = datetime.now(timezone.utc)
    logs = []
    for i in range(count):
        target = rng.choice(users)
        admin = rng.choice(admins)
        action = rng.choice(AUDIT_ACTIONS)
        logs.append(
            AuditLog(
                id=f"audit-{i + 1}",
                user_id=target.id,
                admin_id=admin.id,
                admin_name=f"{admin.first_name} {admin.last_name}",
                action=action,
                details={
                    "action": action,
                    "target_user": f"{target.first_name} {target.last_name}",
                    "changes": _action_details(action),
                },
                timestamp=_random_date(rng, now - timedelta(days=30), now),
                ip_address=_random_ip(rng),
                user_agent="Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
            )
        )
    logs.sort(key=lambda log: log.timestamp, reverse=True)
    return logs


def generate_mock_user_management_data(rng: Optional[random.Random] = None) -> dict:
    rng = rng if rng is not None else random.Random()
    users = generate_mock_users(100, rng)
    return {"users": users, "audit_logs": generate_mock_audit_logs(users, 50, rng)}


def filter_users(
    users: Sequence[UserProfile],
    *,
    role: str = "",
    status: str = "",
    membership: str = "",
    search: str = "",
    sort_by: str = "last_name",
    descending: bool = False,
    page: int = 1,
    page_size: int = 25,
) -> Tuple[List[UserProfile], int]:
    """Filter, sort, and page users; returns (page_items, total_matches)."""
    term = search.strip().lower()
    out = []
    for u in users:
        if role and u.role != role:
            continue
        if status and u.status != status:
            continue
        if membership and u.membership_type != membership:
            continue
        if term and term not in f"{u.first_name} {u.last_name} {u.email}".lower():
            continue
        out.append(u)
    out.sort(key=lambda u: str(getattr(u, sort_by, "") or ""), reverse=descending)
    size = max(1, int(page_size))
    start = (max(1, int(page)) - 1) * size
    return out[start : start + size], len(out)
