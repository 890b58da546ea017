"""
Crypto module - Cryptographic utilities.

Provides:
- hashing: Digests, HMAC, PBKDF2
- tokens: Secure random strings, salts and API keys
- passwords: Password hashing (bcrypt, Argon2id)
- encryption: AES-256-GCM encryption
- claims: Signed-claims tokens (JWT, HMAC family)
"""

from accesslog_libs.crypto.exceptions import (
    AuthenticationFailure,
    CryptoError,
    EntropyFailure,
    HashingFailure,
    InvalidInput,
    InvalidKeyLength,
    InvalidLength,
    InvalidToken,
    SigningFailure,
    UnsupportedAlgorithm,
)

from accesslog_libs.crypto.hashing import (
    HashAlgorithm,
    hash_data,
    hash_string,
    hash_stream,
    verify_hash,
    verify_hash_string,
    hmac_sign,
    hmac_sign_string,
    hmac_verify,
    hmac_verify_string,
    pbkdf2,
    pbkdf2_hex,
)

from accesslog_libs.crypto.tokens import (
    ALPHANUMERIC,
    random_bytes,
    random_string,
    random_hex,
    generate_salt,
    generate_salt_hex,
    secure_token,
    generate_api_key,
    validate_api_key_format,
    hash_api_key,
    verify_api_key,
    constant_time_compare,
)

from accesslog_libs.crypto.passwords import (
    PasswordAlgorithm,
    BcryptOptions,
    Argon2Options,
    PasswordHasher,
    BcryptPasswordHasher,
    Argon2PasswordHasher,
    get_hasher,
    hash_password,
    verify_password,
    needs_rehash,
)

from accesslog_libs.crypto.encryption import (
    AESKey,
    new_key,
    generate_key,
    encrypt,
    decrypt,
    KEY_SIZE,
    NONCE_SIZE,
    TAG_SIZE,
)

from accesslog_libs.crypto.claims import (
    Claims,
    JWTManager,
    HMAC_ALGORITHMS,
    ACCESS_TOKEN_TTL,
    REFRESH_TOKEN_TTL,
)

__all__ = [
    # Errors
    "CryptoError",
    "InvalidInput",
    "InvalidLength",
    "InvalidKeyLength",
    "UnsupportedAlgorithm",
    "AuthenticationFailure",
    "InvalidToken",
    "EntropyFailure",
    "HashingFailure",
    "SigningFailure",
    # Hashing
    "HashAlgorithm",
    "hash_data",
    "hash_string",
    "hash_stream",
    "verify_hash",
    "verify_hash_string",
    "hmac_sign",
    "hmac_sign_string",
    "hmac_verify",
    "hmac_verify_string",
    "pbkdf2",
    "pbkdf2_hex",
    # Random/token generation
    "ALPHANUMERIC",
    "random_bytes",
    "random_string",
    "random_hex",
    "generate_salt",
    "generate_salt_hex",
    "secure_token",
    "generate_api_key",
    "validate_api_key_format",
    "hash_api_key",
    "verify_api_key",
    "constant_time_compare",
    # Password hashing
    "PasswordAlgorithm",
    "BcryptOptions",
    "Argon2Options",
    "PasswordHasher",
    "BcryptPasswordHasher",
    "Argon2PasswordHasher",
    "get_hasher",
    "hash_password",
    "verify_password",
    "needs_rehash",
    # Encryption
    "AESKey",
    "new_key",
    "generate_key",
    "encrypt",
    "decrypt",
    "KEY_SIZE",
    "NONCE_SIZE",
    "TAG_SIZE",
    # Claims tokens
    "Claims",
    "JWTManager",
    "HMAC_ALGORITHMS",
    "ACCESS_TOKEN_TTL",
    "REFRESH_TOKEN_TTL",
]
