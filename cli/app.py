"""
cli/app.py - 메인 CLI 엔트리포인트

Click 기반의 CLI 애플리케이션 진입점입니다.

명령어 구조:
    ec2-inventory --version             # 버전 표시
    ec2-inventory list                  # 인스턴스 목록 (1회 수집)
    ec2-inventory list --json           # JSON 출력
    ec2-inventory serve                 # 30분 주기 갱신을 계속 실행

공통 옵션:
    -c, --config PATH       계정 설정 파일 (기본: $AWS_ACCOUNTS_CONFIG 또는 config/awsaccounts.json)
    --local-dev             공유 자격증명 파일의 default 프로파일 사용 (ENVIRONMENT=LOCALDEV)
    -w, --workers N         계정/리전 동시 수집 수
    --timeout SECONDS       초기화 대기 제한 시간

Usage:
    $ ec2-inventory list -c config/awsaccounts.json
    $ ENVIRONMENT=LOCALDEV ec2-inventory serve

    # 모듈로 실행
    $ python -m cli.app list
"""

import json
import logging
import threading
from collections.abc import Callable
from typing import Any

import click

from ec2_inventory import __version__
from ec2_inventory.config import InventorySettings
from ec2_inventory.exceptions import ConfigLoadError, InventoryError
from ec2_inventory.service import InventoryService, create_service

from .ui import build_instance_table, console, get_logger, print_error, print_info, print_success

# Keep lightweight, centralized logging config
# WARNING 레벨로 설정하여 라이브러리 로그가 출력에 섞이지 않도록 함
logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


def common_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """list / serve 공통 옵션"""
    func = click.option(
        "--timeout",
        type=float,
        default=None,
        help="초기화 대기 제한 시간 (초, 기본: 무제한)",
    )(func)
    func = click.option("-w", "--workers", type=int, default=None, help="계정/리전 동시 수집 수")(func)
    func = click.option(
        "--local-dev",
        is_flag=True,
        default=False,
        help="공유 자격증명 파일의 default 프로파일 사용",
    )(func)
    func = click.option(
        "-c",
        "--config",
        "config_path",
        type=click.Path(dir_okay=False),
        default=None,
        help="계정 설정 파일 경로 (JSON/YAML)",
    )(func)
    return func


def _build_service(config_path: str | None, local_dev: bool, workers: int | None) -> InventoryService:
    """옵션 + 환경 변수로 서비스 생성 (설정 오류 시 종료 코드 1)"""
    try:
        settings = InventorySettings.from_env(
            accounts_file=config_path,
            local_dev=True if local_dev else None,
            max_workers=workers,
        )
        return create_service(settings)
    except ConfigLoadError as e:
        print_error(str(e))
        raise SystemExit(1) from e
    except ValueError as e:
        print_error(f"설정 오류: {e}")
        raise SystemExit(1) from e


def _wait_ready(service: InventoryService, timeout: float | None) -> None:
    """초기화 대기 (실패/시간 초과 시 종료 코드 1)"""
    if service.wait_until_ready(timeout):
        return

    service.stop()
    if service.init_failed():
        print_error(f"인벤토리 초기화 실패: {service.init_state.error}")
    else:
        print_error(f"인벤토리 초기화가 {timeout}초 내에 완료되지 않음")
    raise SystemExit(1)


@click.group()
@click.version_option(__version__, prog_name="ec2-inventory")
@click.option("-v", "--verbose", is_flag=True, help="상세 로그 출력")
def cli(verbose: bool) -> None:
    """멀티 계정 EC2 인벤토리 캐시

    \b
    설정된 모든 계정에서 AssumeRole로 인스턴스가 있는 리전을 찾아
    EC2 인스턴스 목록을 수집하고 캐시합니다.
    """
    get_logger("ec2_inventory", level=logging.DEBUG if verbose else logging.INFO)


@cli.command("list")
@common_options
@click.option("--json", "as_json", is_flag=True, help="JSON 형식으로 출력")
def list_command(
    config_path: str | None,
    local_dev: bool,
    workers: int | None,
    timeout: float | None,
    as_json: bool,
) -> None:
    """인스턴스 목록 수집 후 출력

    \b
    Examples:
        ec2-inventory list                      # 테이블 출력
        ec2-inventory list --json               # JSON 출력
        ec2-inventory list -c accounts.yaml     # 설정 파일 지정
    """
    if as_json:
        # JSON 출력에 로그가 섞이지 않도록 함
        get_logger("ec2_inventory", level=logging.WARNING)

    service = _build_service(config_path, local_dev, workers)
    service.start()
    try:
        _wait_ready(service, timeout)
        try:
            instances = service.get_instances(timeout=timeout)
        except InventoryError as e:
            print_error(str(e))
            raise SystemExit(1) from e
    finally:
        service.stop()

    if as_json:
        click.echo(json.dumps(list(instances), ensure_ascii=False, indent=2, default=str))
        return

    console.print(build_instance_table(list(instances)))
    console.print()
    print_info(f"{len(instances)}개 인스턴스, {len(service.registry.account_regions)}개 계정/리전")


@cli.command("serve")
@common_options
def serve_command(
    config_path: str | None,
    local_dev: bool,
    workers: int | None,
    timeout: float | None,
) -> None:
    """인벤토리 캐시를 유지하며 주기적으로 갱신 (Ctrl+C로 종료)

    \b
    Examples:
        ec2-inventory serve
        INVENTORY_REFRESH_MINUTES=15 ec2-inventory serve -v
    """
    service = _build_service(config_path, local_dev, workers)
    service.start()
    _wait_ready(service, timeout)

    print_success(
        f"인벤토리 준비 완료: {len(service.instances.get())}개 인스턴스, "
        f"{service.settings.refresh_interval_minutes}분 주기 갱신"
    )

    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        print_info("종료 중...")
    finally:
        service.stop()


def main() -> None:
    """콘솔 스크립트 엔트리포인트"""
    cli()


if __name__ == "__main__":
    main()
