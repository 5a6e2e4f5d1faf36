from passlib.context import CryptContext


def make_password_context(work_factor: int) -> CryptContext:
    # hashes below min_rounds are flagged by verify_and_update and re-hashed
    return CryptContext(
        schemes=["bcrypt"],
        deprecated="auto",
        bcrypt__rounds=work_factor,
        bcrypt__min_rounds=work_factor,
    )


def get_password_hash(pwd_context: CryptContext, password: str) -> str:
    return pwd_context.hash(password)
