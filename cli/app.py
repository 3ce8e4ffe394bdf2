"""
cli/app.py - 메인 CLI 엔트리포인트

Click 기반의 CLI 애플리케이션 진입점입니다.
기본 레지스트리에 등록된 Inspector를 조회하고 실행합니다.

명령어 구조:
    aws-inspect --version                       # 버전 표시
    aws-inspect list                            # 등록된 Inspector 목록
    aws-inspect list --json                     # JSON 출력
    aws-inspect run S3                          # S3 전체 검사
    aws-inspect run EC2 -i dangerous-ports      # 특정 검사만
    aws-inspect run S3 EC2 --format json        # 여러 카테고리 동시 실행

자격 증명:
    --profile (또는 AWS_PROFILE)이 있으면 프로파일을, 없으면
    AWS_ACCESS_KEY_ID / AWS_SECRET_ACCESS_KEY / AWS_SESSION_TOKEN 환경변수를 사용합니다.

Usage:
    $ aws-inspect run s3 --profile audit
    $ python -m cli.app list
"""

from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import replace
from typing import Any

import click
from click import Context

from cli.ui import console, err_console, print_error, print_success, print_table, print_warning, setup_logging
from core.config import LogConfig, get_default_profile, get_inspector_options, get_version, settings
from core.exceptions import ConfigError, InspectorNotFoundError, format_error_for_user
from core.inspection import InspectionRequest, InspectionResult, InspectionService
from core.tracking import JobProgressTracker
from inspectors import create_default_registry

logger = logging.getLogger(__name__)

# 설정 오류로 보고 종료 코드 1을 반환하는 예외
FATAL_ERRORS = (ConfigError, InspectorNotFoundError)


def _credentials(profile: str | None, region: str | None) -> dict[str, Any]:
    """CLI 옵션 / 환경변수에서 자격 증명 딕셔너리 구성"""
    profile = profile or get_default_profile()
    if profile:
        return {"profile": profile, "region": region}
    return {
        "access_key_id": os.environ.get("AWS_ACCESS_KEY_ID"),
        "secret_access_key": os.environ.get("AWS_SECRET_ACCESS_KEY"),
        "session_token": os.environ.get("AWS_SESSION_TOKEN"),
        "region": region,
    }


def _print_result(result: InspectionResult) -> None:
    """검사 결과 콘솔 출력"""
    summary = result.to_dict()["summary"]
    header = (
        f"{result.service_category} ({result.region}) - 리소스 {result.resources_scanned}개, "
        f"Finding {summary['totalFindings']}건"
    )

    if not result.findings:
        print_success(header)
    else:
        print_warning(header)
        print_table(
            f"{result.service_category} Findings",
            [("유형", "cyan"), ("리소스", "white"), ("문제", "yellow"), ("권장 조치", "green")],
            [(f.resource_type, f.resource_id, f.issue, f.recommendation) for f in result.findings],
        )

    if result.errors_encountered:
        print_warning(f"검사 중 에러 {len(result.errors_encountered)}건 (--format json으로 상세 확인)")
    console.print()


@click.group()
@click.version_option(get_version(), prog_name="aws-inspect")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    envvar="LOG_LEVEL",
    default="WARNING",
    show_default=True,
    help="로그 레벨 (LOG_LEVEL 환경변수로도 지정)",
)
@click.pass_context
def cli(ctx: Context, log_level: str) -> None:
    """AWS 리소스 설정 검사 CLI"""
    setup_logging(replace(LogConfig.from_env(), level=log_level.upper()))

    ctx.ensure_object(dict)
    ctx.obj["registry"] = create_default_registry()


@cli.command("list")
@click.option("--json", "as_json", is_flag=True, help="JSON 형식으로 출력")
@click.pass_context
def list_command(ctx: Context, as_json: bool) -> None:
    """등록된 Inspector와 검사 항목 목록

    \b
    Examples:
        aws-inspect list
        aws-inspect list --json
    """
    infos = ctx.obj["registry"].list_info()

    if as_json:
        click.echo(json.dumps([info.to_dict() for info in infos], ensure_ascii=False, indent=2))
        return

    rows = []
    for info in infos:
        for check in info.checks:
            rows.append((info.service_category, check.check_id, check.name, check.category))
    print_table(
        "사용 가능한 검사",
        [("카테고리", "cyan"), ("검사 ID", "white"), ("이름", "white"), ("분류", "yellow")],
        rows,
    )


@cli.command("run")
@click.argument("categories", nargs=-1, required=True)
@click.option("-i", "--item", "target_item", default=settings.ALL_ITEMS, show_default=True, help="검사 항목 ID")
@click.option("-r", "--region", default=None, help="AWS 리전 (기본: AWS_REGION 또는 ap-northeast-2)")
@click.option("-p", "--profile", default=None, help="AWS 프로파일")
@click.option(
    "-f",
    "--format",
    "output_format",
    type=click.Choice(list(settings.SUPPORTED_OUTPUT_FORMATS)),
    default="console",
    show_default=True,
    help="출력 형식",
)
@click.option("-w", "--max-workers", default=4, show_default=True, help="동시에 실행할 검사 수")
@click.pass_context
def run_command(
    ctx: Context,
    categories: tuple[str, ...],
    target_item: str,
    region: str | None,
    profile: str | None,
    output_format: str,
    max_workers: int,
) -> None:
    """Inspector 실행

    \b
    Examples:
        aws-inspect run S3
        aws-inspect run ec2 -i dangerous-ports -r us-east-1
        aws-inspect run S3 EC2 --format json
    """
    service = InspectionService(ctx.obj["registry"], JobProgressTracker(), get_inspector_options())
    credentials = _credentials(profile, region)
    config = {"targetItem": target_item, "region": region}
    requests = [InspectionRequest(category, credentials, config) for category in categories]

    if output_format == "console":
        with err_console.status(f"검사 실행 중: {', '.join(c.upper() for c in categories)}"):
            outcomes = service.run_many(requests, max_workers=max_workers)
    else:
        outcomes = service.run_many(requests, max_workers=max_workers)

    failed = [o for o in outcomes if not o.success]
    for outcome in failed:
        print_error(f"{outcome.request.service_category}: {format_error_for_user(outcome.error)}")

    results = [o.result for o in outcomes if o.result is not None]
    if output_format == "json":
        click.echo(json.dumps([r.to_dict() for r in results], ensure_ascii=False, indent=2, default=str))
    else:
        for result in results:
            _print_result(result)

    if any(isinstance(o.error, FATAL_ERRORS) for o in failed):
        sys.exit(1)


def main() -> None:
    """콘솔 스크립트 엔트리포인트"""
    cli(obj={})


if __name__ == "__main__":
    main()
