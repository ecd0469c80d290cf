"""
Claims Generator - Deterministic mock insurance claims.

This module provides the ClaimGenerator class that handles:
- Seeded generation of realistic claim records
- Unique claim identifiers within a generated batch
- Reproducible output for a given seed and reference time

The generator owns a private random.Random instance, so it never touches
the global random state and never reads OS entropy.
"""

import random
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional


DAMAGE_TYPES = ("Hurricane", "Fire", "Flood", "Theft", "Vandalism")

CLAIM_STATUSES = ("PENDING", "UNDER_REVIEW", "APPROVED", "DENIED", "SUBMIT_FAILED", "ERROR")

POLICY_PREFIXES = ("AUTO", "HOME", "PROP", "LIFE")

US_CITIES = (
    "New York, NY", "Los Angeles, CA", "Chicago, IL", "Houston, TX",
    "Phoenix, AZ", "Philadelphia, PA", "San Antonio, TX", "San Diego, CA",
    "Dallas, TX", "San Jose, CA", "Austin, TX", "Jacksonville, FL",
    "Fort Worth, TX", "Columbus, OH", "Charlotte, NC", "San Francisco, CA",
    "Indianapolis, IN", "Seattle, WA", "Denver, CO", "Boston, MA",
    "Nashville, TN", "Miami, FL", "Atlanta, GA", "Portland, OR",
    "Las Vegas, NV",
)

FIRST_NAMES = (
    "James", "Mary", "John", "Patricia", "Robert", "Jennifer",
    "Michael", "Linda", "William", "Barbara", "David", "Elizabeth",
    "Richard", "Susan", "Joseph", "Jessica", "Thomas", "Sarah",
    "Charles", "Karen", "Christopher", "Nancy", "Daniel", "Lisa",
)

LAST_NAMES = (
    "Smith", "Johnson", "Williams", "Brown", "Jones", "Garcia",
    "Miller", "Davis", "Rodriguez", "Martinez", "Hernandez", "Lopez",
    "Gonzalez", "Wilson", "Anderson", "Thomas", "Taylor", "Moore",
    "Jackson", "Martin", "Lee", "Perez", "Thompson", "White",
)

MIN_AMOUNT = 1000
MAX_AMOUNT = 50000  # exclusive upper bound of the draw
DATE_WINDOW_DAYS = 30

# CLM-YYYY-NNN leaves 900 distinct sequence numbers per year
MAX_BATCH_SIZE = 900


@dataclass(frozen=True)
class MockClaim:
    """Insurance claim in the AS/400 legacy layout."""
    id: str
    policy_number: str
    claimant_name: str
    location: str
    damage_type: str
    amount: int
    date: datetime
    status: str = "PENDING"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "policy_number": self.policy_number,
            "claimant_name": self.claimant_name,
            "location": self.location,
            "damage_type": self.damage_type,
            "amount": self.amount,
            "date": self.date.isoformat(),
            "status": self.status,
        }


def start_of_utc_day(now: Optional[datetime] = None) -> datetime:
    """Truncate a timestamp to midnight UTC."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)


class ClaimGenerator:
    """Seeded producer of mock claims.

    Two generators built with the same seed and reference time return
    identical claims for the same sequence of calls.
    """

    def __init__(self, seed: str, reference_time: Optional[datetime] = None):
        """Initialize the generator.

        Args:
            seed: Seed string for the pseudo-random sequence.
            reference_time: Anchor for claim years and loss dates. Defaults
                to the start of the current UTC day, which makes the output
                depend on the calendar day as well as the seed.
        """
        self.seed = seed
        self.reference_time = reference_time or start_of_utc_day()
        self._rng = random.Random(seed)

    def generate_claim(self) -> MockClaim:
        """Generate a single claim."""
        rng = self._rng
        sequence = rng.randint(100, 999)
        damage_type = rng.choice(DAMAGE_TYPES)
        location = rng.choice(US_CITIES)
        amount = rng.randrange(MIN_AMOUNT, MAX_AMOUNT)
        policy_number = f"{rng.choice(POLICY_PREFIXES)}-{rng.randint(1000000, 9999999)}"
        claimant_name = f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}"
        offset = timedelta(seconds=rng.random() * DATE_WINDOW_DAYS * 24 * 3600)

        return MockClaim(
            id=f"CLM-{self.reference_time.year}-{sequence}",
            policy_number=policy_number,
            claimant_name=claimant_name,
            location=location,
            damage_type=damage_type,
            amount=amount,
            date=self.reference_time - offset,
            status="PENDING",
        )

    def generate_claims(self, count: int) -> List[MockClaim]:
        """Generate a batch of claims with unique identifiers.

        Args:
            count: Number of claims, between 1 and MAX_BATCH_SIZE.

        Returns:
            Claims in generation order.

        Raises:
            ValueError: If count is out of range.
        """
        if count < 1:
            raise ValueError("Count must be at least 1")
        if count > MAX_BATCH_SIZE:
            raise ValueError(f"Count exceeds maximum limit of {MAX_BATCH_SIZE} claims")

        claims: List[MockClaim] = []
        used_ids = set()

        while len(claims) < count:
            claim = self.generate_claim()
            # Re-draw on id collision
            if claim.id in used_ids:
                continue
            used_ids.add(claim.id)
            claims.append(claim)

        return claims
