from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class Principal(BaseModel):
    """The authenticated user behind a verified credential."""

    model_config = ConfigDict(coerce_numbers_to_str=True, populate_by_name=True)

    id: str
    login: str = Field(default="", validation_alias=AliasChoices("login", "username"))
    is_admin: bool = Field(
        default=False,
        validation_alias=AliasChoices("isAdmin", "is_admin"),
        serialization_alias="isAdmin",
    )
    created_at: int = 0
    last_login_at: int = 0
