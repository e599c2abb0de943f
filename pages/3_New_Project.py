"""
New project registration form.
"""
import streamlit as st

st.set_page_config(page_title="新規案件登録", page_icon="📝", layout="wide")

from datetime import date
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from lapin_ops.config import WORK_TYPES, ACQUISITION_ROUTES
from lapin_ops.data.loader import load_employees
from lapin_ops.metrics.employees import picker_options
from lapin_ops.metrics.projects import validate_new_project, ValidationError, REQUIRED_PROJECT_FIELDS
from lapin_ops.ui.layout import page_setup

LIST_PAGE = "pages/2_Projects.py"


def main():
    ctx = page_setup("新規案件登録")

    employees = load_employees(ctx.api.get_employees())
    assignees = {"": "未設定", **picker_options(employees)}

    if st.button("← 戻る"):
        st.switch_page(LIST_PAGE)

    with st.form("new_project"):
        left, right = st.columns(2)
        with left:
            st.markdown("#### 👤 顧客情報")
            customer_name = st.text_input("顧客名 *")
            customer_name_kana = st.text_input("顧客名（カナ）")
            postal_code = st.text_input("郵便番号")
            address = st.text_input("住所 *")
            phone = st.text_input("電話番号 *")
            email = st.text_input("メールアドレス")
        with right:
            st.markdown("#### 🏠 案件情報")
            work_type = st.selectbox("工事種別 *", [""] + WORK_TYPES,
                                     format_func=lambda v: v or "選択してください")
            work_description = st.text_area("工事内容")
            estimated_amount = st.number_input("見込み金額（円） *", min_value=0, step=10000, value=0)
            inquiry_date = st.date_input("問い合わせ日 *", value=date.today())
            acquisition_route = st.selectbox("取得経路 *", [""] + ACQUISITION_ROUTES,
                                             format_func=lambda v: v or "選択してください")
            assigned_to = st.selectbox("営業担当者", list(assignees), format_func=assignees.get)
            notes = st.text_area("備考")

        submitted = st.form_submit_button("登録する", type="primary")

    if not submitted:
        return

    form = {
        "customer_name": customer_name,
        "customer_name_kana": customer_name_kana,
        "postal_code": postal_code,
        "address": address,
        "phone": phone,
        "email": email,
        "work_type": work_type,
        "work_description": work_description,
        "estimated_amount": estimated_amount or "",
        "acquisition_route": acquisition_route,
        "inquiry_date": inquiry_date.isoformat() if inquiry_date else "",
        "assigned_to": assigned_to,
        "notes": notes,
    }
    try:
        payload = validate_new_project(form)
    except ValidationError as e:
        missing = "、".join(REQUIRED_PROJECT_FIELDS[f] for f in e.fields)
        st.error(f"{e}（未入力: {missing}）")
        return

    with st.spinner("登録中..."):
        result = ctx.api.create_project(payload)
    if result.success:
        st.toast("案件を登録しました", icon="✅")
        st.switch_page(LIST_PAGE)
    else:
        st.error(result.error_message or "登録に失敗しました")


if __name__ == "__main__":
    main()
