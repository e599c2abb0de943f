"""
Project detail: basic info and status, photos, cost items, meeting records.
"""
import streamlit as st

st.set_page_config(page_title="案件詳細", page_icon="📋", layout="wide")

from datetime import date
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from lapin_ops.api.fanout import fetch_all
from lapin_ops.config import STATUS_LABELS, PHOTO_TYPES, COST_CATEGORIES, MEETING_TYPES
from lapin_ops.data.loader import load_cost_items, load_meetings
from lapin_ops.metrics.expenses import to_data_url
from lapin_ops.metrics.projects import parse_work_types, cost_summary, status_label
from lapin_ops.ui.components import error_banner, empty_state, toast_result
from lapin_ops.ui.formatting import fmt_man_yen, fmt_yen, fmt_percent, fmt_date
from lapin_ops.ui.layout import page_setup
from lapin_ops.ui.state import get_state, set_state

LIST_PAGE = "pages/2_Projects.py"
MAP_PAGE = "pages/8_Customer_Map.py"


def _project_from(result):
    data = result.data or {}
    return data.get("project", data) if isinstance(data, dict) else None


def _or_dash(value, formatter=fmt_man_yen):
    return formatter(value) if value else "—"


# =============================================================================
# TABS
# =============================================================================

def render_basic(api, project: dict):
    left, mid, right = st.columns(3)
    with left:
        st.markdown("#### 顧客情報")
        st.markdown(f"**管理番号**: {project.get('project_number') or '—'}")
        st.markdown(f"**顧客名**: {project.get('customer_name') or '—'}")
        st.markdown(f"**住所**: {project.get('address') or '—'}")
        st.markdown(f"**電話番号**: {project.get('phone') or '—'}")
        st.markdown("#### 工事情報")
        st.markdown(f"**工事概要**: {project.get('work_description') or '—'}")
        st.markdown(f"**工事種別**: {', '.join(parse_work_types(project.get('work_type'))) or '—'}")
        st.markdown(f"**見込み金額**: {fmt_man_yen(float(project.get('estimated_amount') or 0))}")
        st.markdown(f"**集客ルート**: {project.get('acquisition_route') or '—'}")

    with mid:
        st.markdown("#### 担当・ステータス")
        st.markdown(f"**営業担当者**: {project.get('assigned_to_name') or '—'}")
        statuses = list(STATUS_LABELS)
        current = project.get("status") if project.get("status") in statuses else statuses[0]
        new_status = st.selectbox("ステータス", statuses, index=statuses.index(current),
                                  format_func=status_label, key="detail_status")
        if new_status != current:
            result = api.update_project(str(project["id"]), {"status": new_status})
            toast_result(result, "ステータスを更新しました", "更新に失敗しました")
            if result.success:
                project["status"] = new_status
        st.markdown(f"**問い合わせ日**: {fmt_date(project.get('inquiry_date'))}")
        if project.get("contract_date"):
            st.markdown(f"**契約日**: {fmt_date(project.get('contract_date'))}")

    with right:
        st.markdown("#### 原価情報")
        st.markdown(f"**契約金額**: {_or_dash(project.get('contract_amount'))}")
        st.markdown(f"**計画予算**: {_or_dash(project.get('planned_budget'))}")
        st.markdown(f"**実行予算**: {_or_dash(project.get('actual_budget'))}")
        st.markdown(f"**実際原価**: {_or_dash(project.get('actual_cost'))}")
        st.markdown(f"**粗利額**: {_or_dash(project.get('gross_profit'))}")
        st.markdown(f"**粗利率**: {_or_dash(project.get('gross_profit_rate'), fmt_percent)}")
        if st.button("🗺️ 地図で見る", key="detail_open_map"):
            st.session_state["map_focus_id"] = str(project["id"])
            st.switch_page(MAP_PAGE)
        if project.get("drive_folder_id"):
            st.link_button("Google Driveを開く",
                           f"https://drive.google.com/drive/folders/{project['drive_folder_id']}")

    with st.expander("顧客写真を登録"):
        upload = st.file_uploader("顧客写真", type=["jpg", "jpeg", "png"], key="customer_photo")
        if upload is not None and st.button("保存", key="customer_photo_save"):
            photo_data = to_data_url(upload.getvalue(), upload.type or "image/jpeg")
            toast_result(api.save_customer_photo(str(project["id"]), photo_data=photo_data),
                         "顧客写真を保存しました", "保存に失敗しました")


def render_photos(api, project: dict, photos: list):
    photo_type = st.radio("写真種別", list(PHOTO_TYPES), format_func=PHOTO_TYPES.get, horizontal=True,
                          index=list(PHOTO_TYPES).index(get_state("photo_type")), key="detail_photo_type")
    set_state("photo_type", photo_type)

    shown = [p for p in photos if p.get("photo_type") == photo_type]
    if not shown:
        empty_state("この種別の写真はまだありません", icon="🖼️")
    else:
        cols = st.columns(4)
        for i, photo in enumerate(shown):
            with cols[i % 4]:
                if photo.get("url"):
                    st.image(photo["url"], caption=photo.get("memo") or None)

    with st.form("photo_upload", clear_on_submit=True):
        upload = st.file_uploader("写真を追加", type=["jpg", "jpeg", "png"])
        memo = st.text_input("メモ")
        if st.form_submit_button("アップロード") and upload is not None:
            result = api.upload_photo({
                "project_id": str(project["id"]),
                "photo_type": photo_type,
                "photo_data": to_data_url(upload.getvalue(), upload.type or "image/jpeg"),
                "memo": memo,
            })
            toast_result(result, "写真をアップロードしました", "アップロードに失敗しました")
            if result.success:
                st.rerun()


def render_costs(api, project: dict):
    result = api.get_cost_items(str(project["id"]))
    if not result.success:
        error_banner(result, "原価の取得に失敗しました")
        return
    items = load_cost_items(result)
    summary = cost_summary(project.get("contract_amount"), items, (result.data or {}).get("total_cost"))

    cols = st.columns(4)
    cols[0].metric("契約金額", fmt_yen(float(project.get("contract_amount") or 0)))
    cols[1].metric("原価合計", fmt_yen(summary["total_cost"]))
    cols[2].metric("粗利", fmt_yen(summary["gross_profit"]))
    cols[3].metric("粗利率", fmt_percent(summary["gross_profit_rate"]))

    if len(items):
        st.dataframe(
            items[["cost_date", "category", "vendor_name", "description", "amount"]].rename(columns={
                "cost_date": "日付", "category": "区分", "vendor_name": "業者",
                "description": "内容", "amount": "金額",
            }),
            hide_index=True, use_container_width=True,
        )
    else:
        empty_state("原価項目はまだありません", icon="🧾")

    with st.form("cost_item", clear_on_submit=True):
        st.markdown("**原価を追加**")
        c1, c2, c3 = st.columns(3)
        cost_date = c1.date_input("日付", value=date.today())
        category = c2.selectbox("区分", COST_CATEGORIES)
        amount = c3.number_input("金額", min_value=0, step=1000)
        vendor = st.text_input("業者名")
        description = st.text_input("内容")
        if st.form_submit_button("追加"):
            if amount <= 0:
                st.error("金額を入力してください")
                return
            result = api.create_cost_item({
                "project_id": str(project["id"]),
                "cost_date": cost_date.isoformat(),
                "category": category,
                "vendor_name": vendor,
                "description": description,
                "amount": amount,
            })
            toast_result(result, "原価を追加しました", "追加に失敗しました")
            if result.success:
                st.rerun()


def render_meetings(api, project: dict):
    result = api.get_meetings(str(project["id"]))
    if not result.success:
        error_banner(result, "商談記録の取得に失敗しました")
        return
    meetings = load_meetings(result)

    for _, m in meetings.iterrows():
        with st.container(border=True):
            st.markdown(f"**{fmt_date(m['meeting_date'])}　{m['meeting_type'] or ''}**　{m['user_name'] or ''}")
            if m["attendees"]:
                st.caption(f"参加者: {m['attendees']}")
            st.markdown(m["content"] or "")
            if m["next_action"]:
                st.markdown(f"➡️ 次回アクション: {m['next_action']}")
    if len(meetings) == 0:
        empty_state("商談記録はまだありません", icon="📝")

    # Formatted text replaces the draft before the widget is built.
    pending = st.session_state.pop("meeting_content_pending", None)
    if pending is not None:
        st.session_state["meeting_content"] = pending

    with st.form("meeting"):
        st.markdown("**商談記録を追加**")
        c1, c2 = st.columns(2)
        meeting_date = c1.date_input("日付", value=date.today())
        meeting_type = c2.selectbox("種別", MEETING_TYPES)
        attendees = st.text_input("参加者")
        content = st.text_area("内容", key="meeting_content", height=160)
        next_action = st.text_input("次回アクション")
        b1, b2 = st.columns(2)
        format_clicked = b1.form_submit_button("AIで整形")
        save_clicked = b2.form_submit_button("保存", type="primary")

    if format_clicked and content.strip():
        formatted = api.format_text(content, "meeting")
        if formatted.success and formatted.get("formatted_text"):
            st.session_state["meeting_content_pending"] = formatted.get("formatted_text")
            st.rerun()
        st.toast(f"整形に失敗しました: {formatted.error_message or ''}", icon="⚠️")

    if save_clicked:
        if not content.strip():
            st.error("内容を入力してください")
            return
        result = api.create_meeting({
            "project_id": str(project["id"]),
            "meeting_date": meeting_date.isoformat(),
            "meeting_type": meeting_type,
            "attendees": attendees,
            "content": content,
            "next_action": next_action,
        })
        toast_result(result, "商談記録を保存しました", "保存に失敗しました")
        if result.success:
            st.session_state["meeting_content_pending"] = ""
            st.rerun()


def main():
    ctx = page_setup("案件詳細")

    project_id = get_state("selected_project_id") or st.query_params.get("project_id")
    if not project_id:
        empty_state("案件が選択されていません")
        if st.button("← 案件一覧へ戻る"):
            st.switch_page(LIST_PAGE)
        return
    st.query_params["project_id"] = project_id

    with st.spinner("読み込み中..."):
        results = fetch_all({
            "project": lambda: ctx.api.get_project(project_id),
            "photos": lambda: ctx.api.get_photos(project_id),
        })

    project = _project_from(results["project"]) if results["project"].success else None
    if not project:
        if not results["project"].success:
            error_banner(results["project"], "案件の取得に失敗しました", retry_key="detail_retry")
        else:
            empty_state("案件が見つかりません")
        if st.button("← 案件一覧へ戻る"):
            st.switch_page(LIST_PAGE)
        return

    photos = (results["photos"].data or {}).get("photos", []) if results["photos"].success else []

    head, back = st.columns([5, 1])
    head.subheader(f"{project.get('project_number') or ''} {project.get('customer_name') or ''}")
    if back.button("← 戻る", use_container_width=True):
        st.switch_page(LIST_PAGE)

    basic, photo_tab, cost, meeting = st.tabs(["基本情報", f"写真 ({len(photos)})", "原価", "商談記録"])
    with basic:
        render_basic(ctx.api, project)
    with photo_tab:
        render_photos(ctx.api, project, photos)
    with cost:
        render_costs(ctx.api, project)
    with meeting:
        render_meetings(ctx.api, project)


if __name__ == "__main__":
    main()
