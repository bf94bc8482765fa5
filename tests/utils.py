import torch


def parallelogram_strip(seeds, length):
    """
    Extend three seed vectors into a strip where every further element is
    exactly predicted: v[k] = v[k-3] + v[k-1] - v[k-2].
    """
    values = [torch.as_tensor(seed, dtype=torch.float64) for seed in seeds]
    while len(values) < length:
        values.append(values[-3] + values[-1] - values[-2])
    return torch.stack(values)


def smooth_strip(length, dim=3, noise=1e-3, seed=0):
    """A near-planar strip: exact parallelogram progression plus small noise."""
    generator = torch.Generator().manual_seed(seed)
    seeds = torch.rand((3, dim), generator=generator, dtype=torch.float64)
    values = parallelogram_strip(seeds, length)
    values = values + noise * torch.rand(values.shape, generator=generator, dtype=torch.float64)
    return values.to(torch.float32)


def random_unit_vectors(count, seed=0):
    generator = torch.Generator().manual_seed(seed)
    vectors = torch.randn((count, 3), generator=generator, dtype=torch.float64)
    return vectors / vectors.norm(dim=1, keepdim=True)
