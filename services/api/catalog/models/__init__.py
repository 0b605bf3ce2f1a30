"""SQLAlchemy ORM models.

Models represent database tables:
- products: Catalog records searched and de-duplicated against
- npd_submissions: Crowdsourced new-product candidates
- users: Contributors (tier, quality score, earnings)
"""

from catalog.models.enums import SubmissionStatus, Tier, VerificationStatus
from catalog.models.product import Product
from catalog.models.submission import NpdSubmission
from catalog.models.user import User

__all__ = ["NpdSubmission", "Product", "SubmissionStatus", "Tier", "User", "VerificationStatus"]
