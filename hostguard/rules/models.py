from pydantic import BaseModel, ConfigDict, Field

from hostguard.components.redirect_policy import Policy


class RedirectRules(BaseModel):
    canonical_host: str
    enforce_https: bool = True
    fixed_rewrites: dict[str, str] = Field(default_factory=dict)
    whitelist: dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")

    def to_policy(self) -> Policy:
        """Build the immutable policy. Raises InvalidPolicy."""
        return Policy(
            canonical_host=self.canonical_host,
            enforce_https=self.enforce_https,
            fixed_rewrites=self.fixed_rewrites,
            whitelist=self.whitelist,
        )
