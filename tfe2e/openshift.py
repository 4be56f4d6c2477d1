"""`oc login` against a cluster an identity provider was attached to."""
import os
import shutil
import subprocess
import time


def oc_available():
    return shutil.which("oc") is not None


def oc_login(server, username, password, kubeconfig, timeout=60, insecure=True):
    """Run `oc login` once. Returns (rc, stdout, stderr)."""
    os.makedirs(os.path.dirname(kubeconfig) or ".", exist_ok=True)
    cmd = ["oc", "login", server, "--username", username, "--password", password,
           "--kubeconfig", kubeconfig]
    if insecure:
        cmd.append("--insecure-skip-tls-verify")
    print(f"  $ oc login {server} --username {username} --password *** --kubeconfig {kubeconfig}")
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
        return result.returncode, result.stdout.strip(), result.stderr.strip()
    except subprocess.TimeoutExpired:
        return 1, "", "oc login timed out"


def wait_for_login(server, username, password, kubeconfig, timeout=420, interval=30):
    """Retry `oc login` until it succeeds; new identity providers take a few
    minutes to reach the OAuth server."""
    deadline = time.time() + timeout
    last = (1, "", "no attempt made")
    while time.time() < deadline:
        last = oc_login(server, username, password, kubeconfig)
        if last[0] == 0:
            return last
        time.sleep(interval)
    return last
