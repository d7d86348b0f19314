# slimlocal

Building blocks for serving local development apps on HTTPS `.local`
domains, such as `https://myapp.local`, backed by services that listen on
plain `localhost` ports.

Python 3.10 or newer is required. The only runtime dependency is
`cryptography`, used to read certificate expiry dates.

## What is in the package

- **`slimlocal.protocol`**: frames that prefix a payload with a big-endian
  32-bit request id (`encode_frame`, `decode_frame`, raising `FrameError`
  on short input); HTTP/1.1 request and response serialization
  (`HttpRequest`, `HttpResponse`, `serialize_request`,
  `deserialize_request`, `serialize_response`, `deserialize_response`);
  and the JSON registration messages `RegistrationRequest` and
  `RegistrationResponse`.
- **`slimlocal.routing`**: `normalize_host`, `local_domain_from_host`,
  `cors_headers`, and `DomainRouter`, which picks an upstream port for a
  path from a list of `PathRoute` prefixes (the longest match wins) and
  strips the matched prefix with `strip_prefix`.
- **`slimlocal.health`**: `check_upstream` and `check_upstreams` test TCP
  reachability on `localhost`; `wait_for_upstream` polls until a port
  accepts connections or raises `UpstreamTimeoutError`.
- **`slimlocal.ipc`**: a line-delimited JSON request/response protocol over
  a Unix socket: `IPCServer`, `send_ipc`, `is_running`, the message types
  in `MessageType`, and the `StatusData`, `DomainInfo` and `RouteInfo`
  records. Failures are raised as `IPCError`.
- **`slimlocal.hostfile`**: `add_host`, `remove_host` and `remove_all_hosts`
  manage `127.0.0.1 name.local # slim` lines in a hosts file (default
  `/etc/hosts`); `write_file_elevated` retries through `sudo tee` when a
  plain write is refused.
- **`slimlocal.portfwd`**: `new_port_forwarder` returns a
  `DarwinPortForwarder` (a `pf` anchor) or a `LinuxPortForwarder` (an
  `iptables` nat chain) that redirects loopback ports 80 and 443 to the
  given proxy ports. Other platforms raise `PortForwardError`.
- **`slimlocal.preflight`**: `ensure_port_available`,
  `ensure_proxy_ports_available` (raising `PortUnavailableError`) and
  `ensure_port_forwarding`, which turns forwarding on and reports a failure
  as skipped rather than raising.
- **`slimlocal.doctor`**: individual checks and `run`, which builds a
  `Report` of `CheckResult`s covering the CA certificate, CA trust, port
  forwarding, hosts entries, the daemon and per-domain certificates.
- **`slimlocal.log`**: an access log with `full`, `minimal` and `off` modes
  (`set_output`, `request`, `close`), console `info`/`error` messages, and
  `format_duration`.
- **`slimlocal.term`**: ANSI `Style`s, `style_for_status`, and `run_steps`,
  which runs a list of `Step`s and prints a mark for each.
- **`slimlocal.httperr`**: `network_hint` and `wrap` turn network errors
  into readable messages; `from_response` and `status_hint` do the same for
  HTTP error responses (`ServerError`).
- **`slimlocal.osutil`**: `run_privileged` and `command_exists`.

## Examples

Frames start with a big-endian 32-bit request id:

```python
from slimlocal.protocol import encode_frame, decode_frame

frame = encode_frame(42, b"hello world")
request_id, payload = decode_frame(frame)
assert request_id == 42
assert payload == b"hello world"
```

Host headers are normalised before the `.local` name is looked up:

```python
from slimlocal.routing import normalize_host, local_domain_from_host

assert normalize_host("MyApp.Local:443") == "myapp.local"
assert local_domain_from_host("myapp.local") == "myapp"
```

Routing by path prefix:

```python
from slimlocal.routing import DomainRouter, PathRoute

router = DomainRouter(3000, [PathRoute("/api", 8080)])
assert router.match("/api/users") == 8080
assert router.match("/apikeys") == 3000
assert router.strip_prefix("/api/users") == "/users"
```

Turning an HTTP status into a hint for the user:

```python
from slimlocal.httperr import status_hint

print(status_hint(429))  # too many requests, please wait a moment and try again
```

Formatting request durations the way the access log does:

```python
from slimlocal.log import format_duration

assert format_duration(0.125) == "125ms"
assert format_duration(1.5) == "1.5s"
```

Waiting for a development server to start listening:

```python
from slimlocal.health import wait_for_upstream, UpstreamTimeoutError

try:
    wait_for_upstream(3000, timeout=5.0)
except UpstreamTimeoutError as exc:
    print(exc)
```

Running the diagnostics and printing each result:

```python
from slimlocal import doctor
from slimlocal.portfwd import new_port_forwarder

report = doctor.run(
    domains=["myapp"],
    ca_cert_path="/path/to/rootCA.pem",
    leaf_cert_path=lambda domain: f"/path/to/certs/{domain}.pem",
    forwarder=new_port_forwarder(doctor.PROXY_HTTP_PORT, doctor.PROXY_HTTPS_PORT),
    socket_path="/path/to/slim.sock",
)
for result in report.results:
    print(result.status.name, result.name, result.message)
```

## What the package does not do

It is a library of parts, not a finished proxy. It has no command-line
program, and it does not itself run the HTTPS reverse proxy, generate or
install certificates, load a configuration file, start a background daemon
process, advertise names over mDNS, or connect to a tunnel server. The
daemon socket, certificate paths and domain lists are passed in by the
caller.

## Privileges

Editing `/etc/hosts` and installing port-forwarding rules need root. When
the current process is not privileged, the package falls back to `sudo`,
so you may be prompted for your password.