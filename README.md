# distlab

Small distributed-systems components that run as plain Python objects in
one process:

- **`distlab.balancing`**: a load balancer with server-selection policies,
  task servers that report heartbeats, and a client that runs a task
  through the balancer.
- **`distlab.mapreduce`**: word-count and inverted-index MapReduce jobs
  over a folder of files, with hash-partitioned intermediate files.
- **`distlab.payments`**: banks backed by SQLite with bcrypt-hashed
  passwords, a gateway that moves money between banks with a two-phase
  commit, an idempotency-key response cache, and a client-side transaction
  manager that retries stalled requests.
- **`distlab.generals`**: an oral-messages simulation of the Byzantine
  generals problem.

## Installation

```
pip install .
pip install ".[test]"    # with the test dependencies
```

## Command-line tools

### `distlab-mapreduce`

Runs a whole MapReduce job in this process, with one mapper per input file:

```
distlab-mapreduce -T wordcount -R 3 -DATA path/to/inputs -WORKDIR out
```

- `-T`: task, `wordcount` (default) or `invertedindex`
- `-R`: number of reducers (default 5)
- `-DATA`: folder of input files (default `datasets`)
- `-WORKDIR`: folder for results (default `.`)

Mappers write `mapResults/<port>/<reducer>.out` under the work folder, and
reducers append to `reducerResults/<task>-<reducer>.out`, one
`key : value1,value2` line per key. Word count writes the number of
occurrences. Inverted index writes the distinct documents in the order
they were first seen. The command prints the path of each output file. An
unknown task exits with status 1.

### `distlab-generals`

```
distlab-generals -N 4 -T 1 -SIMULATE -LOGDIR logs
```

- `-N`: number of generals, at least 4
- `-T`: number of traitors, not negative
- `-SIMULATE`: run every general in this process
- `-LOGDIR`: folder for the per-general logs (default `.`)

Without `-SIMULATE`, the command starts one `make run-server ID=.. PORT=..
TYPE=.. N=.. T=..` process per general, on ports from 5000. Invalid
arguments exit with status 2.

## Library use

### Load balancing

```python
from distlab.balancing.policies import ServerInfo, get_policy

policy = get_policy("least_loaded")     # also "pick_first", "round_robin"
servers = {
    "localhost:5001": ServerInfo("localhost:5001", cpu_load=20.0, task_load=1),
    "localhost:5002": ServerInfo("localhost:5002", cpu_load=5.0, task_load=3),
}
chosen = policy(servers)    # lowest CPU load, ties broken by task load
```

An unknown name falls back to `least_loaded`. `validate_policy` in
`distlab.balancing.balancer` rejects unknown names with `ValueError`.

`LoadBalancer(policy_name, log_path="server.log")` keeps the live
servers. `process_server_heartbeat` records a server's state, and
`server_registered` and `server_expired` add and forget servers by address.
`process_client_request(load)` returns the chosen `ServerInfo`, appends
the choice to `log_path` (pass `None` to turn this off), and raises
`NoServersAvailable` when there is no server.

`TaskServer(address, balancer)` runs busy-work tasks with `run_task(seconds)`.
`heartbeat()` reports the CPU load measured by `psutil` and the current
task count. `send_heartbeats(stop_event, interval)` repeats this until the
event is set. `TaskClient(balancer, connect, log_path="client.log")`
picks a server, calls `connect(address).run_task(load)`, appends the
turnaround time to its log and returns it.

### MapReduce

```python
from distlab.mapreduce.master import run_job

outputs = run_job("inputs", task="invertedindex", num_reducers=2, workdir="out")
```

The building blocks are `distlab.mapreduce.tasks` (`get_task_details`,
`wordcount_map`, ...), `distlab.mapreduce.intermediate` (`split_words`,
`fnv1a_32`, `partition`, `read_intermediate_file`, `sort_kv`,
`reduce_by_key`, `write_output`) and `distlab.mapreduce.worker`
(`Worker`, `new_worker`).

### Payments

```python
from distlab.payments.bank import BankServer
from distlab.payments.bank_db import BankDatabase
from distlab.payments.gateway import PaymentGateway

with BankDatabase("bank.db") as db:
    db.seed_users()                     # admin, user1, user2
    bank = BankServer("Example Bank", db)

    password = "password"
    session = bank.get_client_session("user1", password)

    gateway = PaymentGateway(timeout=10.0)
    gateway.bank_register("Example Bank", bank)
    gateway.make_payment("user1", "Example Bank", "user2", "Example Bank", 100)
    gateway.check_balance("user2", "Example Bank")    # 3100
```

A wrong password raises `InvalidCredentials`, and an unknown user raises
`UserNotFound`. A payment that a bank votes against, or that gets no
answer within the timeout, raises `TransactionAborted`. An unknown bank
raises `BankNotRegistered`.

`ResponseCache.call(key, handler, request)` runs a handler once per
idempotency key and replays its result or error. Errors derived from
`Unavailable`, which include `TransactionAborted`, are not cached.
`TransactionManager.submit(invoker, timeout)` calls `invoker(key)` with a
fresh idempotency key. The retry loop started by `start()`, or a call to
`retry_pending()`, retries requests that have been idle too long with the
same key. Once the retries run out it raises `MaxRetriesReached`.
`bearer_metadata(token)` builds an `authorization` header value.

### Byzantine generals

`simulate(n, t, log_dir)` in `distlab.generals.launcher` picks traitors
with `choose_traitors`, connects the `General` objects, and has general 0
order an attack. Each general appends
`Round <r>: [<kind>] Majority Value = <bool>` lines to `<id>.out` in the
log folder.

## What is not included

- No network servers. The balancer, task servers, workers, banks and
  gateway are in-process objects, and the "connections" are the objects
  you pass to them. There is no service discovery or lease store; call
  `server_registered` and `server_expired` yourself.
- The gateway has no login endpoint, tokens, role checks or TLS. Logins
  are checked at the bank with `BankServer.get_client_session`.
- `fork_processes` (used by `distlab-generals` without `-SIMULATE`) only
  starts `make run-server` processes. The package provides no Makefile or
  server command for them to run.

## Running the tests

```
pytest
```