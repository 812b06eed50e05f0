"""Route paths used for links and redirects."""

from dataclasses import dataclass, field
from uuid import UUID


@dataclass(frozen=True)
class AuthRoutes:
    sign_in: str = "/auth/sign-in"
    sign_out: str = "/auth/sign-out"
    get_started: str = "/auth/get-started"
    forgot_password: str = "/auth/forgot-password"


@dataclass(frozen=True)
class MesocycleRoutes:
    list: str = "/app/mesocycles"
    new: str = "/app/mesocycles/new"

    def design(self, mesocycle_id: UUID | str) -> str:
        return f"/app/mesocycles/new/design/{mesocycle_id}"


@dataclass(frozen=True)
class ConfigRoutes:
    home: str = "/"
    app_root: str = "/app"
    train: str = "/app/train"
    stripe_webhook: str = "/webhooks/stripe"
    dev_checkout: str = "/dev/checkout"
    auth: AuthRoutes = field(default_factory=AuthRoutes)
    mesocycles: MesocycleRoutes = field(default_factory=MesocycleRoutes)


config_routes = ConfigRoutes()
