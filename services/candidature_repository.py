"""
PostgreSQL repository for candidatures: duplicate lookups, insert and read-back
"""

from typing import Optional
from uuid import UUID

import psycopg2
from psycopg2 import errors as pg_errors
from psycopg2.extras import Json

from models.candidature import CandidatureIdentity, CandidatureRecord, StoredCandidature
from utils.database import DatabaseManager
from utils.errors import CandidatureError, DuplicateEmailError, StorageConstraintError
from utils.logging_utils import get_logger

logger = get_logger(__name__)


SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS candidatures (
        id SERIAL PRIMARY KEY,
        uuid UUID NOT NULL,
        date_soumission TIMESTAMPTZ NOT NULL DEFAULT now(),
        nom VARCHAR(100) NOT NULL,
        prenom VARCHAR(100) NOT NULL,
        nationalite VARCHAR(50) NOT NULL,
        sexe VARCHAR(10) NOT NULL,
        date_naissance DATE NOT NULL,
        lieu_naissance VARCHAR(50) NOT NULL,
        telephone VARCHAR(16) NOT NULL,
        email VARCHAR(150) NOT NULL,
        organisation VARCHAR(200),
        pays VARCHAR(50) NOT NULL,
        departement VARCHAR(100),
        poste_actuel VARCHAR(100) NOT NULL,
        description_taches VARCHAR(500) NOT NULL,
        diplome VARCHAR(50) NOT NULL,
        institution VARCHAR(200) NOT NULL,
        domaine VARCHAR(100) NOT NULL,
        langues TEXT[] NOT NULL,
        niveaux JSONB NOT NULL,
        resultats_attendus VARCHAR(500) NOT NULL,
        autres_infos VARCHAR(1000),
        mode_financement VARCHAR(20) NOT NULL,
        institution_financement VARCHAR(200),
        contact_financement VARCHAR(100),
        email_contact_financement VARCHAR(150),
        source_information VARCHAR(50) NOT NULL,
        consentement BOOLEAN NOT NULL
    )
    """,
    "CREATE UNIQUE INDEX IF NOT EXISTS candidatures_uuid_key ON candidatures (uuid)",
    "CREATE UNIQUE INDEX IF NOT EXISTS candidatures_email_lower_key ON candidatures (lower(email))",
]

RECORD_COLUMNS = list(CandidatureRecord.model_fields.keys())

INSERT_SQL = (
    "INSERT INTO candidatures (uuid, "
    + ", ".join(RECORD_COLUMNS)
    + ") VALUES (%(uuid)s::uuid, "
    + ", ".join(f"%({column})s" for column in RECORD_COLUMNS)
    + ") RETURNING id, uuid, date_soumission"
)

FIND_LATEST_BY_EMAIL_SQL = """
    SELECT id, uuid, date_soumission
    FROM candidatures
    WHERE lower(email) = lower(%s)
    ORDER BY date_soumission DESC
    LIMIT 1
"""

FIND_BY_UUID_SQL = "SELECT * FROM candidatures WHERE uuid = %s::uuid"


class CandidatureRepository:
    """Reads and writes the candidatures table"""

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager

    def ensure_schema(self) -> None:
        """Create the table and its unique indexes if missing"""
        self.db_manager.execute_script(SCHEMA_STATEMENTS)
        logger.info("✅ Candidatures schema ready")

    def find_latest_by_email(self, email: str) -> Optional[CandidatureIdentity]:
        """
        Most recent candidature for this email (case-insensitive)

        Args:
            email: Email to look up

        Returns:
            Identity of the existing candidature, or None
        """
        row = self.db_manager.execute_query(FIND_LATEST_BY_EMAIL_SQL, (email,), fetch_one=True)
        return CandidatureIdentity(**row) if row else None

    def insert(self, record: CandidatureRecord, candidature_uuid: UUID) -> CandidatureIdentity:
        """
        Insert a validated candidature in a single statement

        Args:
            record: Normalized candidature
            candidature_uuid: Public identifier generated for it

        Returns:
            Identity assigned by the store (id, uuid, date_soumission)

        Raises:
            DuplicateEmailError: the email unique index rejected the row
            StorageConstraintError: any other constraint or type violation
        """
        params = record.to_row()
        params["niveaux"] = Json(params["niveaux"])
        params["uuid"] = str(candidature_uuid)

        try:
            row = self.db_manager.execute_returning(INSERT_SQL, params)
        except psycopg2.Error as exc:
            mapped = map_storage_error(exc)
            if mapped is None:
                raise
            logger.warning("⚠️ Insert rejected by storage: %s", exc.__class__.__name__)
            raise mapped from exc

        return CandidatureIdentity(**row)

    def find_by_uuid(self, candidature_uuid: UUID) -> Optional[StoredCandidature]:
        """Read a stored candidature back by its public identifier"""
        row = self.db_manager.execute_query(FIND_BY_UUID_SQL, (str(candidature_uuid),), fetch_one=True)
        if row is None:
            return None
        return StoredCandidature(
            identity=CandidatureIdentity(id=row["id"], uuid=row["uuid"], date_soumission=row["date_soumission"]),
            record=CandidatureRecord.from_row(row),
        )


def map_storage_error(exc: psycopg2.Error) -> Optional[CandidatureError]:
    """
    Translate a storage engine error into the service taxonomy

    Returns:
        The mapped error, or None when the error is not a known constraint/type violation
    """
    if isinstance(exc, pg_errors.UniqueViolation):
        diag = getattr(exc, "diag", None)
        constraint = getattr(diag, "constraint_name", None) or ""
        if "email" in constraint.lower() or "email" in str(exc).lower():
            return DuplicateEmailError()
        return StorageConstraintError("Conflit : entrée déjà existante.", status_code=409)
    if isinstance(exc, pg_errors.ForeignKeyViolation):
        return StorageConstraintError("Contrainte d'intégrité violée (clé étrangère).", status_code=409)
    if isinstance(exc, pg_errors.InvalidTextRepresentation):
        return StorageConstraintError("Paramètre invalide.", status_code=400)
    return None
