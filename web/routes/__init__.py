"""
API 라우트 패키지

각 기능별 라우터 모듈:
- health: 헬스 체크
- accounts: 계정, 잔액, 분개 목록, 원장 명세, 신용 프로필, 관리자 변경
- ledger: 단독 분개 기록/역분개, 종류별 잔액 합계
- transfer: 이체 실행/조회/역이체
- credit: 신용 노출 요약
"""
