"""Cloud-init user data that installs and starts the service on a droplet."""

import shlex

APP_DIR = "/opt/{service}"
CONFIG_DIR = "/etc/{service}"

_TEMPLATE = """#!/bin/bash
# Log everything
exec > >(tee /var/log/user-data.log)
exec 2>&1

echo "Starting {service} setup..."

export DEBIAN_FRONTEND=noninteractive
apt-get update -y
apt-get upgrade -y
apt-get install -y python3 python3-venv python3-pip git

mkdir -p {app_dir} {config_dir}
python3 -m venv {app_dir}/venv
{app_dir}/venv/bin/pip install --upgrade pip
{app_dir}/venv/bin/pip install {package}

cat > {config_dir}/config.yaml << 'CONFIG_EOF'
{config_yaml}CONFIG_EOF
chmod 600 {config_dir}/config.yaml

cat > /etc/systemd/system/{service}.service << 'SERVICE_EOF'
[Unit]
Description=Fundraiser Vestaboard updater
After=network-online.target
Wants=network-online.target

[Service]
Type=simple
User=root
WorkingDirectory={app_dir}
ExecStart={app_dir}/venv/bin/python -m fundraiser_board --config {config_dir}/config.yaml run
Restart=always
RestartSec=10
StandardOutput=journal
StandardError=journal
SyslogIdentifier={service}

[Install]
WantedBy=multi-user.target
SERVICE_EOF

systemctl daemon-reload
systemctl enable {service}
systemctl start {service}

echo "Setup complete! {service} is now running."
echo "IP Address: $(curl -s http://169.254.169.254/metadata/v1/interfaces/public/0/ipv4/address)"
echo "To check status: systemctl status {service}"
echo "To view logs: journalctl -u {service} -f"
"""


def build_user_data(config_yaml: str, package_spec: str, service: str) -> str:
    """Render the bash startup script for a fresh Ubuntu droplet.

    Args:
        config_yaml: Runtime configuration written to /etc/<service>/config.yaml
        package_spec: pip requirement for this package (name, URL or git spec)
        service: systemd unit name, also used for directories

    Returns:
        Script suitable for the droplet ``user_data`` field
    """
    if "CONFIG_EOF" in config_yaml:
        raise ValueError("Config contains the heredoc terminator")
    if not config_yaml.endswith("\n"):
        config_yaml += "\n"

    return _TEMPLATE.format(
        service=service,
        app_dir=APP_DIR.format(service=service),
        config_dir=CONFIG_DIR.format(service=service),
        package=shlex.quote(package_spec),
        config_yaml=config_yaml,
    )
