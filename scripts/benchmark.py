"""HTTP benchmark for catalog API endpoints."""
import asyncio
import argparse
import time
import statistics
import httpx

DEFAULT_BASE_URL = "http://localhost:8000"

ENDPOINTS = [
    ("GET /api/v1/services", "/api/v1/services"),
    ("GET /api/v1/services?category=Design", "/api/v1/services?category=Design"),
    ("GET /api/v1/services/names", "/api/v1/services/names"),
    ("GET /api/v1/services/{slug}", "/api/v1/services/{slug}"),
    ("GET /api/v1/admin/services", "/api/v1/admin/services"),
    ("GET /api/v1/blog/posts", "/api/v1/blog/posts"),
    ("GET /api/v1/gallery", "/api/v1/gallery"),
    ("GET /api/v1/metrics", "/api/v1/metrics"),
    ("GET /health", "/health"),
]


async def benchmark_endpoint(client: httpx.AsyncClient, name: str, path: str, iterations: int = 50):
    times = []
    query_counts = []
    errors = 0

    # Warmup
    for _ in range(3):
        try:
            await client.get(path)
        except httpx.HTTPError:
            errors += 1

    for _ in range(iterations):
        try:
            start = time.perf_counter()
            resp = await client.get(path)
            elapsed = (time.perf_counter() - start) * 1000

            if resp.status_code == 200:
                times.append(elapsed)
                qc = resp.headers.get("X-Query-Count")
                if qc is not None:
                    query_counts.append(int(qc))
            else:
                errors += 1
        except httpx.HTTPError:
            errors += 1

    if not times:
        return {"name": name, "error": f"All {iterations} requests failed"}

    return {
        "name": name,
        "avg_ms": round(statistics.mean(times), 2),
        "p50_ms": round(sorted(times)[len(times) // 2], 2),
        "p95_ms": round(sorted(times)[int(len(times) * 0.95)], 2),
        "p99_ms": round(sorted(times)[int(len(times) * 0.99)], 2),
        "min_ms": round(min(times), 2),
        "max_ms": round(max(times), 2),
        "queries": round(statistics.mean(query_counts), 1) if query_counts else "N/A",
        "errors": errors,
        "iterations": len(times),
    }


async def _sample_slug(client: httpx.AsyncClient) -> str | None:
    resp = await client.get("/api/v1/services")
    services = resp.json().get("data") or []
    return services[0]["slug"] if services else None


async def run_benchmark(base_url: str, iterations: int = 50):
    print("=" * 80)
    print(f"Catalog API Benchmark: {iterations} iterations per endpoint")
    print(f"Target: {base_url}")
    print("=" * 80)

    async with httpx.AsyncClient(base_url=base_url) as client:
        try:
            resp = await client.get("/health")
            if resp.status_code != 200:
                print(f"ERROR: Health check failed ({resp.status_code})")
                return
            print(f"Health: {resp.json()}")
        except httpx.HTTPError as e:
            print(f"ERROR: Cannot connect to {base_url}: {e}")
            return

        slug = await _sample_slug(client)

        print()
        print(f"{'Endpoint':<45} {'Avg':>8} {'P50':>8} {'P95':>8} {'P99':>8} {'Queries':>8} {'Err':>4}")
        print("-" * 80)

        for name, path in ENDPOINTS:
            if "{slug}" in path:
                if slug is None:
                    print(f"{name:<45} {'SKIPPED':>8}")
                    continue
                path = path.format(slug=slug)
            result = await benchmark_endpoint(client, name, path, iterations)

            if "error" in result:
                print(f"{result['name']:<45} {'ERROR':>8}")
            else:
                print(
                    f"{result['name']:<45} "
                    f"{result['avg_ms']:>7.1f}ms "
                    f"{result['p50_ms']:>7.1f}ms "
                    f"{result['p95_ms']:>7.1f}ms "
                    f"{result['p99_ms']:>7.1f}ms "
                    f"{str(result['queries']):>8} "
                    f"{result['errors']:>4}"
                )

        print("-" * 80)
        print("\nBenchmark complete.")


def main():
    parser = argparse.ArgumentParser(description="Benchmark catalog API")
    parser.add_argument("-n", "--iterations", type=int, default=50, help="Iterations per endpoint")
    parser.add_argument("--base-url", default=DEFAULT_BASE_URL, help="API base URL")
    args = parser.parse_args()
    asyncio.run(run_benchmark(args.base_url, args.iterations))


if __name__ == "__main__":
    main()
