"""
StackIt Backend — Vote Schemas
===============================

`voteType` is restricted to the literals below; FastAPI rejects anything else
with 422 before a route handler (and therefore the vote ledger) runs.
"""

from typing import Literal

from pydantic import Field

from app.schemas.common import APIModel

VoteType = Literal["upvote", "downvote"]


class VoteRequest(APIModel):
    vote_type: VoteType = Field(description="Direction of the vote: upvote or downvote")


class VoteResponse(APIModel):
    """
    Derived view returned by every vote endpoint.

    `vote_count` is |upvotes| - |downvotes| at the time of the response;
    the `has_*` flags describe the acting user's membership.
    """
    vote_count: int
    has_upvoted: bool
    has_downvoted: bool
