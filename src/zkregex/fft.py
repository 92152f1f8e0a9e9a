from typing import Iterator


def pows(a: int, n: int, p: int) -> Iterator[int]:
    # a⁰, a¹, ..., aⁿ⁻¹ in GF(p)
    r = 0x01
    for _ in range(n):
        yield r
        r = r * a % p


def pru(n: int, p: int) -> int:
    # A primitive n-th root of unity in GF(p), n has to be a power of 2 dividing p - 1. Any quadratic
    # non-residue z generates the whole 2-sylow subgroup, so z^((p - 1) / n) has order exactly n.
    if n & n - 1 or (p - 1) % n:
        raise ValueError("no primitive {}-th root of unity in GF({})".format(n, p))
    z = 0x02
    while pow(z, (p - 1) // 2, p) == 0x01:
        z += 0x01
    return pow(z, (p - 1) // n, p)


def fft(a: list[int], w: int, p: int) -> list[int]:
    # Evaluate the polynomial with coefficients a at w⁰, w¹, ..., wⁿ⁻¹, len(a) has to be a power of 2.
    n = len(a)
    if n == 1:
        return list(a)
    t = w * w % p
    b = fft(a[0::2], t, p)
    c = fft(a[1::2], t, p)
    h = n // 2
    r = [0x00] * n
    for i, k in enumerate(pows(w, h, p)):
        r[i], r[i + h] = (b[i] + k * c[i]) % p, (b[i] - k * c[i]) % p
    return r


def ifft(a: list[int], w: int, p: int) -> list[int]:
    m = pow(len(a), -1, p)
    return [x * m % p for x in fft(a, pow(w, -1, p), p)]
