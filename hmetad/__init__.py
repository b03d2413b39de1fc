from .config import McmcParams
from .data import trials_to_counts, validate_group
from .exceptions import (MetaDError, InputShapeError, InconsistentRatingCountError,
                         InvalidParameterError, SamplerFailure)
from .fit import GroupFit, fit_meta_d_mcmc_group
from .posterior import ConditionalEfficiency, LatentMeans, PooledEfficiency, map_posterior
from .request import InferenceRequest, ModelVariant, build_inference_request
from .sampler import PosteriorSummary, PyMCSampler, Sampler
from .sdt import CustomDistribution, NormalDistribution, Type1Estimate, rms_scale, type1_estimate
from .type2 import estimated_type2_rates, observed_type2_rates, type2_group_fit
from .diagnostics import check_convergence, plot_group_posteriors, plot_type2_fit
