"""
Eligibility rules - pure functions, no side effects.

A student may apply to an opportunity when:
1. Major matches: the preferred major is the student's major, or the
   "Other" wildcard.
2. Level fits the year: years 1-2 are limited to BASIC postings; years 3-4
   may take any level.

Whether the posting itself is accepting applications is a separate check
(is_open_for_applications), since it depends on the date.
"""

from datetime import date

from app.models import (
    WILDCARD_MAJOR,
    InternshipLevel,
    InternshipOpportunity,
    OpportunityStatus,
    Student,
)

# Highest year of study restricted to BASIC postings
JUNIOR_YEAR_LIMIT = 2


def major_matches(student: Student, opportunity: InternshipOpportunity) -> bool:
    return opportunity.preferred_major in (student.major, WILDCARD_MAJOR)


def level_allowed(student: Student, opportunity: InternshipOpportunity) -> bool:
    if student.year_of_study <= JUNIOR_YEAR_LIMIT:
        return opportunity.level == InternshipLevel.BASIC
    return True


def is_eligible(student: Student, opportunity: InternshipOpportunity) -> bool:
    return major_matches(student, opportunity) and level_allowed(student, opportunity)


def is_within_application_window(opportunity: InternshipOpportunity, today: date) -> bool:
    return opportunity.opening_date <= today <= opportunity.closing_date


def is_open_for_applications(opportunity: InternshipOpportunity, today: date) -> bool:
    return (
        opportunity.status == OpportunityStatus.APPROVED
        and opportunity.visible
        and is_within_application_window(opportunity, today)
        and opportunity.filled_slots < opportunity.total_slots
    )


def is_past_closing_date(opportunity: InternshipOpportunity, today: date) -> bool:
    return today > opportunity.closing_date
