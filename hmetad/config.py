from typing import Optional

from pydantic import BaseModel, ConfigDict, PositiveInt, model_validator


class McmcParams(BaseModel):
    """Settings for the MCMC run behind a group fit."""

    model_config = ConfigDict(frozen=True)

    response_conditional: bool = False # fit meta-d' separately for S1 and S2 responses
    nchains: PositiveInt = 3
    nburnin: PositiveInt = 1000
    nsamples: PositiveInt = 10000
    nthin: PositiveInt = 1 # keep every nthin-th draw
    doparallel: bool = False
    dic: bool = True
    init0: Optional[list[dict]] = None # one dict of initial values per chain
    target_accept: float = 0.95
    random_seed: Optional[int] = None

    @model_validator(mode='after')
    def check_init0(self):
        if self.init0 is not None and len(self.init0) != self.nchains:
            raise ValueError(
                f"init0 has {len(self.init0)} entries but nchains is {self.nchains}"
            )
        if not 0 < self.target_accept < 1:
            raise ValueError("target_accept must lie strictly between 0 and 1")
        return self
